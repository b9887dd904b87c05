"""
Benchmark orchestrator for adaptive timing measurements.

Runs each instance until the uncertainty on its mean run time reaches the
configured precision, removes outliers with a median/MAD filter and
subtracts the measured launch overhead.
"""

import math
import os
import warnings
from contextlib import nullcontext
from dataclasses import dataclass, field, replace
from typing import Callable, Iterable, Mapping, Optional, Sequence, Union

from ..errors import AlreadyStarted, ConfigError, DegenerateMean, InvalidInstance
from ..instances.base import Instance
from ..instrumentation.stats import (
    VariabilityMeasure,
    mean,
    median,
    resolve_variability_measure,
)
from ..instrumentation.traces import Tracer
from .result import MeasurementResult

ENV_PREFIX = "STEADYBENCH_"

# Warm-up samples thrown away before a pass starts recording.
WARMUP_RUNS = 1
DRY_WARMUP_RUNS = 3


@dataclass(frozen=True)
class BenchmarkConfig:
    """Configuration for a benchmark session."""

    target_rel_precision: float = 0.05
    target_abs_precision: float = 0.0
    initial_runs: int = 20
    max_iterations: int = 10000
    variability_measure: Union[str, VariabilityMeasure] = "mad"
    outlier_rejection: Optional[float] = 2.5
    verbosity: int = 0

    measure: VariabilityMeasure = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if self.target_abs_precision <= 0 and self.target_rel_precision <= 0:
            raise ConfigError(
                "Need either target_rel_precision or target_abs_precision > 0"
            )
        if self.target_abs_precision < 0 or self.target_rel_precision < 0:
            raise ConfigError("Precision targets must not be negative")
        if self.initial_runs < 1:
            raise ConfigError(f"initial_runs must be at least 1, got {self.initial_runs}")
        if self.max_iterations < 1:
            raise ConfigError(
                f"max_iterations must be at least 1, got {self.max_iterations}"
            )
        if self.outlier_rejection and self.outlier_rejection < 0:
            raise ConfigError(
                f"outlier_rejection must not be negative, got {self.outlier_rejection}"
            )
        object.__setattr__(
            self, "measure", resolve_variability_measure(self.variability_measure)
        )
        if self.initial_runs < 6:
            warnings.warn(
                "Number of initial runs is very small (<6). Precision will be off.",
                UserWarning,
                stacklevel=3,
            )

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        **overrides,
    ) -> "BenchmarkConfig":
        """Build a config from STEADYBENCH_* variables, then keyword overrides.

        Overrides that are None are ignored so argparse namespaces can be
        passed through directly.
        """
        environ = os.environ if environ is None else environ
        converters: dict[str, Callable[[str], object]] = {
            "target_rel_precision": float,
            "target_abs_precision": float,
            "initial_runs": int,
            "max_iterations": int,
            "outlier_rejection": float,
            "variability_measure": str,
            "verbosity": int,
        }
        values: dict = {}
        for name, convert in converters.items():
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw is None or raw == "":
                continue
            try:
                values[name] = convert(raw)
            except ValueError:
                raise ConfigError(
                    f"Invalid value for {ENV_PREFIX + name.upper()}: {raw!r}"
                ) from None
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        measure = self.variability_measure
        return {
            "target_rel_precision": self.target_rel_precision,
            "target_abs_precision": self.target_abs_precision,
            "initial_runs": self.initial_runs,
            "max_iterations": self.max_iterations,
            "variability_measure": (
                measure if isinstance(measure, str) else getattr(measure, "__name__", repr(measure))
            ),
            "outlier_rejection": self.outlier_rejection,
            "verbosity": self.verbosity,
        }


@dataclass(frozen=True)
class PassSettings:
    """Effective parameters of one measurement pass."""

    initial_runs: int
    target_rel_precision: float
    target_abs_precision: float
    max_iterations: int
    warmup_runs: int
    verbosity: int
    dry: bool = False

    @classmethod
    def for_pass(cls, config: BenchmarkConfig, dry: bool = False) -> "PassSettings":
        """Derive pass settings; the dry pass is longer and stricter."""
        if not dry:
            return cls(
                initial_runs=config.initial_runs,
                target_rel_precision=config.target_rel_precision,
                target_abs_precision=config.target_abs_precision,
                max_iterations=config.max_iterations,
                warmup_runs=WARMUP_RUNS,
                verbosity=config.verbosity,
            )
        return cls(
            initial_runs=config.initial_runs * 5,
            target_rel_precision=config.target_rel_precision / 2,
            target_abs_precision=0.0,
            max_iterations=config.max_iterations * 10,
            warmup_runs=DRY_WARMUP_RUNS,
            verbosity=max(config.verbosity - 1, 0),
            dry=True,
        )


@dataclass
class PassRecord:
    """Outcome of one measurement pass."""

    result: MeasurementResult
    samples: list[float]
    precision_reached: bool
    dry: bool = False

    @property
    def rejected_count(self) -> int:
        return len(self.samples) - self.result.sample_count


def reject_outliers(
    samples: Sequence[float],
    center: float,
    spread: float,
    factor: Optional[float],
) -> list[float]:
    """Keep samples strictly closer than ``factor * spread`` to ``center``.

    A falsy factor disables rejection. With zero spread only the samples
    sitting on the center survive; if nothing survives, all samples are kept.
    """
    if not factor:
        return list(samples)
    cut = factor * spread
    kept = [x for x in samples if abs(x - center) < cut]
    if not kept:
        kept = [x for x in samples if x == center] or list(samples)
    return kept


class ConvergenceController:
    """Samples one instance until the estimate is precise enough.

    Algorithm, per iteration:
    1) median and variability (MAD) of all samples so far
    2) drop samples further than ``outlier_rejection`` MADs from the median
    3) mean and variability of the rest; the uncertainty on the mean is
       variability / sqrt(n_good)
    4) stop once the precision targets are met with at least
       ``initial_runs`` good samples, or when ``max_iterations`` is hit

    Timing distributions are a narrow bulk plus rare slow outliers. The
    median and MAD are barely moved by those, so cutting around them does
    not bias the mean upwards the way a symmetric truncated mean would.
    """

    def __init__(self, config: BenchmarkConfig):
        self.config = config

    def _say(self, settings: PassSettings, level: int, message: str) -> None:
        if settings.verbosity >= level:
            print(message)

    def estimate(
        self,
        samples: Sequence[float],
    ) -> MeasurementResult:
        """Robust ``mean ± sigma`` estimate of the given samples."""
        measure = self.config.measure
        reference_sigma = measure(samples)
        center = median(samples)
        good = reject_outliers(
            samples, center, reference_sigma, self.config.outlier_rejection
        )
        n_good = len(good)
        sigma = measure(good) / math.sqrt(n_good)
        return MeasurementResult(value=mean(good), uncertainty=sigma, sample_count=n_good)

    def needs_more(self, estimate: MeasurementResult, settings: PassSettings) -> bool:
        """Whether the estimate misses any precision target."""
        need_iter = False
        sigma = estimate.uncertainty
        if settings.target_rel_precision > 0:
            if sigma == 0:
                rel = 0.0
            elif estimate.value == 0:
                raise DegenerateMean(
                    f"Relative precision undefined: mean is 0 with uncertainty {sigma}"
                )
            else:
                rel = sigma / abs(estimate.value)
            self._say(
                settings, 2,
                f"Reached relative precision {rel} (need {settings.target_rel_precision}).",
            )
            if rel > settings.target_rel_precision:
                need_iter = True
        if settings.target_abs_precision > 0:
            self._say(
                settings, 2,
                f"Reached absolute precision {sigma} (need {settings.target_abs_precision}).",
            )
            if sigma > settings.target_abs_precision:
                need_iter = True
        if estimate.sample_count < settings.initial_runs:
            need_iter = True
        return need_iter

    def run_pass(self, instance: Instance, dry: bool = False) -> PassRecord:
        """Measure one instance until convergence or the iteration cap."""
        settings = PassSettings.for_pass(self.config, dry)
        sample = instance.single_dry_run if dry else instance.single_run

        self._say(settings, 1, "Running initial timing for warming up the cache...")
        for _ in range(settings.warmup_runs):
            sample()

        initial = min(settings.initial_runs, settings.max_iterations)
        timings: list[float] = []
        self._say(settings, 1, f"Running {initial} initial timings...")
        for i in range(initial):
            self._say(settings, 2, f"Running timing {i + 1}...")
            timings.append(sample())

        self._say(settings, 1, "Iterating until target precision reached...")
        while True:
            estimate = self.estimate(timings)
            need_iter = self.needs_more(estimate, settings)
            if not need_iter or len(timings) >= settings.max_iterations:
                break
            timings.append(sample())

        precision_reached = not need_iter
        if not precision_reached and not dry:
            print("Reached maximum number of iterations. Stopping. Precision not reached.")

        return PassRecord(
            result=estimate,
            samples=timings,
            precision_reached=precision_reached,
            dry=dry,
        )


class BenchmarkSession:
    """Holds instances and measures each of them: overhead first, then real."""

    def __init__(
        self,
        config: Optional[BenchmarkConfig] = None,
        instances: Iterable[Instance] = (),
        tracer: Optional[Tracer] = None,
        **options,
    ):
        if config is None:
            config = BenchmarkConfig(**options)
        elif options:
            config = replace(config, **options)
        self.config = config
        self.tracer = tracer
        self.controller = ConvergenceController(config)
        self._instances: list[Instance] = []
        self._started = False
        self.add(*instances)

    @property
    def started(self) -> bool:
        return self._started

    @property
    def instances(self) -> tuple[Instance, ...]:
        return tuple(self._instances)

    def add(self, *instances: Instance) -> None:
        """Register instances to benchmark."""
        if self._started:
            raise AlreadyStarted("Can't add instances after the benchmark has been started")
        for instance in instances:
            if not isinstance(instance, Instance):
                raise InvalidInstance(
                    f"Expected an Instance, got {type(instance).__name__}"
                )
        self._instances.extend(instances)

    def clone(self, **overrides) -> "BenchmarkSession":
        """New, not-started session with fresh copies of all instances."""
        config = replace(self.config, **overrides) if overrides else self.config
        return BenchmarkSession(
            config=config,
            instances=[instance.fresh_copy() for instance in self._instances],
            tracer=self.tracer,
        )

    def run(self) -> None:
        """Run the dry pass, then the real pass, for every instance."""
        if self._started:
            raise AlreadyStarted("Can't re-run same benchmark session")
        self._started = True
        self._run_dry_timings()
        self._run_timings()

    def _run_dry_timings(self) -> None:
        for instance in self._instances:
            if instance.dry_result is not None:
                continue
            record = self._measure(instance, dry=True)
            instance.dry_timings = record.samples
            instance.dry_result = record.result

    def _run_timings(self) -> None:
        for instance in self._instances:
            if instance.result is not None:
                continue
            record = self._measure(instance, dry=False)
            instance.timings = record.samples
            instance.precision_reached = record.precision_reached
            instance.result = record.result - instance.dry_result

    def _measure(self, instance: Instance, dry: bool) -> PassRecord:
        if self.config.verbosity:
            kind = "dry run" if dry else "benchmark"
            print(f"\n{instance.name}: {kind}")
        span = (
            self.tracer.span(
                "steadybench.pass",
                {"instance": instance.name, "dry": dry},
            )
            if self.tracer
            else nullcontext()
        )
        with span as span_obj:
            record = self.controller.run_pass(instance, dry=dry)
            if span_obj is not None:
                span_obj.set_attribute("samples", len(record.samples))
                span_obj.set_attribute("n_good", record.result.sample_count)
                span_obj.set_attribute("value", record.result.value)
                span_obj.set_attribute("uncertainty", record.result.uncertainty)
                span_obj.set_attribute("precision_reached", record.precision_reached)
        return record

    def to_dict(self) -> dict:
        """Convert session state to dictionary for serialization."""
        return {
            "config": self.config.to_dict(),
            "started": self._started,
            "instances": [instance.to_dict() for instance in self._instances],
        }
