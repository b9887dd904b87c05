"""
Exceptions raised by steadybench.
"""


class BenchmarkError(Exception):
    """Base class for all harness errors."""


class ConfigError(BenchmarkError, ValueError):
    """The benchmark configuration is invalid or incomplete."""


class AlreadyStarted(BenchmarkError, RuntimeError):
    """A session or instance was asked to repeat a finished measurement."""


class InvalidInstance(BenchmarkError, TypeError):
    """An object without the Instance capabilities was handed to a session."""


class InvalidResult(BenchmarkError, ValueError):
    """A measurement result was built from inconsistent numbers."""


class DegenerateMean(BenchmarkError, ArithmeticError):
    """Relative precision is undefined because the filtered mean is zero."""
