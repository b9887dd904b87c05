"""
Benchmark harness for adaptive timing measurements.

Provides the measurement result type, the convergence loop, session
orchestration and reporting.
"""

from .result import MeasurementResult

from .runner import (
    BenchmarkConfig,
    BenchmarkSession,
    ConvergenceController,
    PassRecord,
    PassSettings,
    reject_outliers,
)

from .reporter import (
    ChartReporter,
    ConsoleReporter,
    JSONReporter,
)

__all__ = [
    # Result
    "MeasurementResult",
    # Runner
    "BenchmarkConfig",
    "BenchmarkSession",
    "ConvergenceController",
    "PassRecord",
    "PassSettings",
    "reject_outliers",
    # Reporter
    "ChartReporter",
    "ConsoleReporter",
    "JSONReporter",
]
