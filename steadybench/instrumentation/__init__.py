"""
Instrumentation module for steadybench.

Provides timing utilities, robust statistics and tracing integration.
"""

from .timing import (
    Timer,
    timed,
)

from .stats import (
    MAD_SCALE,
    VARIABILITY_MEASURES,
    SampleStats,
    mad,
    mean,
    median,
    resolve_variability_measure,
)

from .traces import (
    Tracer,
    TracingConfig,
    get_tracer,
    init_tracing,
    shutdown_tracing,
    OTEL_AVAILABLE,
)

__all__ = [
    # Timing
    "Timer",
    "timed",
    # Statistics
    "MAD_SCALE",
    "VARIABILITY_MEASURES",
    "SampleStats",
    "mad",
    "mean",
    "median",
    "resolve_variability_measure",
    # Tracing
    "Tracer",
    "TracingConfig",
    "get_tracer",
    "init_tracing",
    "shutdown_tracing",
    "OTEL_AVAILABLE",
]
