"""
Base class for things a benchmark session can measure.
"""

import copy
from abc import ABC, abstractmethod
from typing import Optional

from ..errors import AlreadyStarted
from ..harness.result import MeasurementResult


class Instance(ABC):
    """One benchmark: something that can be timed repeatedly.

    Subclasses implement ``single_run`` (one real measurement) and
    ``single_dry_run`` (the same scaffolding without the measured work).
    Both return a sample in seconds.

    The real and dry results are set exactly once by the session.
    """

    def __init__(self, name: Optional[str] = None):
        self.name = name or type(self).__name__
        self._reset_state()

    def _reset_state(self) -> None:
        self._result: Optional[MeasurementResult] = None
        self._dry_result: Optional[MeasurementResult] = None
        self.timings: list[float] = []
        self.dry_timings: list[float] = []
        self.precision_reached: Optional[bool] = None

    @abstractmethod
    def single_run(self) -> float:
        """Perform one real measurement."""

    @abstractmethod
    def single_dry_run(self) -> float:
        """Perform one overhead measurement."""

    def fresh_copy(self) -> "Instance":
        """Return a new, not-yet-run instance measuring the same thing."""
        clone = copy.copy(self)
        clone._reset_state()
        return clone

    @property
    def result(self) -> Optional[MeasurementResult]:
        """Baseline-corrected result of the real pass."""
        return self._result

    @result.setter
    def result(self, value: MeasurementResult) -> None:
        if self._result is not None:
            raise AlreadyStarted(f"{self.name}: result is already finalized")
        self._result = value

    @property
    def dry_result(self) -> Optional[MeasurementResult]:
        """Result of the overhead (dry) pass."""
        return self._dry_result

    @dry_result.setter
    def dry_result(self, value: MeasurementResult) -> None:
        if self._dry_result is not None:
            raise AlreadyStarted(f"{self.name}: dry result is already finalized")
        self._dry_result = value

    @property
    def rejected_count(self) -> int:
        """Samples of the real pass discarded as outliers."""
        if self._result is None:
            return 0
        return len(self.timings) - self._result.sample_count

    def describe(self) -> str:
        return self.name

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "description": self.describe(),
            "result": self._result.to_dict() if self._result else None,
            "dry_result": self._dry_result.to_dict() if self._dry_result else None,
            "precision_reached": self.precision_reached,
            "rejected_count": self.rejected_count,
            "timings": list(self.timings),
            "dry_timings": list(self.dry_timings),
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r} result={self._result}>"
