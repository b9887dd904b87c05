"""
Results reporting for benchmark sessions.

Provides console summaries, charts and JSON export.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from ..instances.base import Instance
from ..instrumentation.stats import median
from .runner import BenchmarkConfig, BenchmarkSession, reject_outliers


class ConsoleReporter:
    """Generates console/CLI reports."""

    def __init__(self, use_color: bool = True, verbosity: int = 0):
        self.use_color = use_color
        self.verbosity = verbosity

    def _color(self, text: str, color: str) -> str:
        """Apply ANSI color if enabled."""
        if not self.use_color:
            return text

        colors = {
            "green": "\033[92m",
            "red": "\033[91m",
            "yellow": "\033[93m",
            "blue": "\033[94m",
            "bold": "\033[1m",
            "reset": "\033[0m",
        }

        return f"{colors.get(color, '')}{text}{colors['reset']}"

    def format_percent(self, fraction: Optional[float]) -> str:
        """Format a relative uncertainty for display."""
        if fraction is None:
            return "n/a"
        return f"{fraction * 100:.1f}%"

    def raw_line(self, instance: Instance) -> str:
        """Rounded result only."""
        if instance.result is None:
            return f"{instance.name}: not run"
        return str(instance.result)

    def single_result(self, instance: Instance) -> str:
        """Generate report for a single benchmarked instance."""
        result = instance.result
        if result is None:
            return self._color(f"{instance.name}: not run", "yellow")

        lines = []
        if self.verbosity:
            lines.append(self._color(instance.describe(), "bold"))
        lines.append(f"Ran {len(instance.timings)} iterations of the command.")
        lines.append(f"Rejected {instance.rejected_count} samples as outliers.")
        lines.append(
            f"Rounded run time per iteration: {result} "
            f"({self.format_percent(result.relative_uncertainty)})"
        )
        if instance.precision_reached is False:
            lines.append(self._color("Precision not reached.", "red"))
        if self.verbosity:
            value, sigma = result.raw
            lines.append(f"Raw:                            {value} +/- {sigma}")
            if instance.dry_result is not None:
                lines.append(f"Subtracted overhead:            {instance.dry_result}")

        return "\n".join(lines)

    def session_report(self, session: BenchmarkSession) -> str:
        """Report every instance of a session."""
        return "\n\n".join(self.single_result(i) for i in session.instances)

    def comparison_table(self, instances: Sequence[Instance]) -> str:
        """Generate a comparison table for multiple instances."""
        if not instances:
            return "No results to display"

        headers = ["Benchmark", "Time", "Rel.", "Samples", "Rejected"]
        col_widths = [30, 24, 8, 9, 9]

        lines = []
        lines.append(self._color("=" * sum(col_widths), "blue"))
        header_row = ""
        for i, header in enumerate(headers):
            header_row += f"{header:<{col_widths[i]}}"
        lines.append(self._color(header_row, "bold"))
        lines.append("-" * sum(col_widths))

        for instance in instances:
            name = instance.name[:27] + "..." if len(instance.name) > 30 else instance.name
            result = instance.result
            if result is None:
                lines.append(f"{name:<{col_widths[0]}}not run")
                continue
            row = [
                f"{name:<{col_widths[0]}}",
                f"{str(result):<{col_widths[1]}}",
                f"{self.format_percent(result.relative_uncertainty):<{col_widths[2]}}",
                f"{len(instance.timings):<{col_widths[3]}}",
                f"{instance.rejected_count:<{col_widths[4]}}",
            ]
            lines.append("".join(row))

        return "\n".join(lines)


class ChartReporter:
    """Generates visual charts using matplotlib."""

    def __init__(self, output_dir: Optional[Path] = None, config: Optional[BenchmarkConfig] = None):
        self.output_dir = Path(output_dir) if output_dir else Path("results/charts")
        self.config = config or BenchmarkConfig()
        self._matplotlib_available = False
        self._check_matplotlib()

    def _check_matplotlib(self):
        """Check if matplotlib is available."""
        try:
            import matplotlib
            matplotlib.use("Agg")  # Non-interactive backend
            self._matplotlib_available = True
        except ImportError:
            self._matplotlib_available = False

    def accepted_samples(self, timings: Sequence[float]) -> list[float]:
        """Samples that survive the outlier filter the session applied."""
        center = median(timings)
        spread = self.config.measure(timings)
        return reject_outliers(timings, center, spread, self.config.outlier_rejection)

    def timing_distribution(
        self,
        instance: Instance,
        filename: Optional[str] = None,
    ) -> Optional[Path]:
        """Histogram of the raw samples with the accepted window marked."""
        if not self._matplotlib_available:
            print("Warning: matplotlib not available for charts")
            return None

        import matplotlib.pyplot as plt

        timings = instance.timings
        if not timings or instance.result is None:
            return None

        center = median(timings)
        kept = self.accepted_samples(timings)

        fig, ax = plt.subplots(figsize=(10, 6))
        ax.hist(timings, bins=min(max(len(timings) // 2, 10), 50), edgecolor="black", alpha=0.7)
        ax.axvline(center, color="r", linestyle="--", label=f"median: {center:.4g}s")
        ax.axvspan(min(kept), max(kept), color="green", alpha=0.15, label="accepted")

        ax.set_xlabel("Run time (s)")
        ax.set_ylabel("Count")
        ax.set_title(f"Timing Distribution: {instance.name}  ({instance.result})")
        ax.legend()

        self.output_dir.mkdir(parents=True, exist_ok=True)
        filename = filename or f"{_slug(instance.name)}_timings.png"
        filepath = self.output_dir / filename
        fig.savefig(filepath, dpi=150, bbox_inches="tight")
        plt.close(fig)

        return filepath

    def comparison_bar_chart(
        self,
        instances: Sequence[Instance],
        filename: Optional[str] = None,
    ) -> Optional[Path]:
        """Bar chart of the corrected run times with their uncertainties."""
        if not self._matplotlib_available:
            print("Warning: matplotlib not available for charts")
            return None

        import matplotlib.pyplot as plt
        import numpy as np

        measured = [i for i in instances if i.result is not None]
        if not measured:
            return None

        names = [i.name for i in measured]
        values = np.array([i.result.value for i in measured])
        errors = np.array([i.result.uncertainty for i in measured])
        x = np.arange(len(names))

        fig, ax = plt.subplots(figsize=(12, 6))
        ax.bar(x, values, 0.6, yerr=errors, capsize=4, color="steelblue")

        ax.set_xlabel("Benchmark")
        ax.set_ylabel("Run time (s)")
        ax.set_title("Run Time Comparison")
        ax.set_xticks(x)
        ax.set_xticklabels(names, rotation=45, ha="right")

        fig.tight_layout()

        self.output_dir.mkdir(parents=True, exist_ok=True)
        filename = filename or "comparison_bar_chart.png"
        filepath = self.output_dir / filename
        fig.savefig(filepath, dpi=150, bbox_inches="tight")
        plt.close(fig)

        return filepath


class JSONReporter:
    """Exports session results as JSON for further analysis."""

    def __init__(self, output_dir: Optional[Path] = None):
        self.output_dir = Path(output_dir) if output_dir else Path("results")

    def save_session(self, session: BenchmarkSession, name: str = "steadybench") -> Path:
        """Save a session's configuration and results to JSON."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filepath = self.output_dir / f"{_slug(name)}_{timestamp}.json"

        data = {
            "name": name,
            "timestamp": timestamp,
            **session.to_dict(),
        }

        with open(filepath, "w") as f:
            json.dump(data, f, indent=2)

        return filepath

    def load_result(self, filepath: Path) -> dict:
        """Load a result from JSON."""
        with open(filepath) as f:
            return json.load(f)


def _slug(name: str) -> str:
    cleaned = "".join(c if c.isalnum() or c in "-_" else "_" for c in name)
    return cleaned.strip("_")[:60] or "benchmark"
