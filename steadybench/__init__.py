"""
steadybench - Robust run-time estimates with honest error bars.

Runs an operation repeatedly until the uncertainty on its mean run time
reaches a target precision, rejects outliers with a median/MAD filter and
subtracts the measured launch overhead.

Key modules:
- instrumentation: Timing, robust statistics and tracing
- harness: Convergence loop, sessions, results and reporting
- instances: Things that can be measured (commands, callables)
"""

__version__ = "0.1.0"

from . import instrumentation
from . import harness
from . import instances

from .errors import (
    AlreadyStarted,
    BenchmarkError,
    ConfigError,
    DegenerateMean,
    InvalidInstance,
    InvalidResult,
)
from .harness import BenchmarkConfig, BenchmarkSession, MeasurementResult
from .instances import CallableInstance, CommandInstance, Instance

__all__ = [
    "instrumentation",
    "harness",
    "instances",
    # Errors
    "AlreadyStarted",
    "BenchmarkError",
    "ConfigError",
    "DegenerateMean",
    "InvalidInstance",
    "InvalidResult",
    # Core
    "BenchmarkConfig",
    "BenchmarkSession",
    "MeasurementResult",
    "Instance",
    "CommandInstance",
    "CallableInstance",
]
