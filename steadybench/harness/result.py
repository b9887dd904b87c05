"""
Measurement results carrying an uncertainty.

A result is the estimated run time of one benchmark pass, its standard
error and the number of samples that survived outlier rejection.
"""

import math
from dataclasses import dataclass
from typing import Optional

from ..errors import InvalidResult


@dataclass(frozen=True)
class MeasurementResult:
    """Immutable ``value ± uncertainty`` estimate from ``sample_count`` samples."""

    value: float
    uncertainty: float
    sample_count: int = 1

    def __post_init__(self):
        if not self.uncertainty >= 0:
            raise InvalidResult(
                f"Uncertainty must be non-negative, got {self.uncertainty!r}"
            )
        if self.sample_count < 1:
            raise InvalidResult(
                f"A result needs at least one sample, got {self.sample_count!r}"
            )

    def subtract(self, other: Optional["MeasurementResult"]) -> "MeasurementResult":
        """Remove a baseline, propagating independent errors.

        The sample count of this (foreground) result is kept. Subtracting
        ``None`` returns the result unchanged.
        """
        if other is None:
            return self
        return MeasurementResult(
            value=self.value - other.value,
            uncertainty=math.sqrt(self.uncertainty**2 + other.uncertainty**2),
            sample_count=self.sample_count,
        )

    def __sub__(self, other: Optional["MeasurementResult"]) -> "MeasurementResult":
        if other is not None and not isinstance(other, MeasurementResult):
            return NotImplemented
        return self.subtract(other)

    @property
    def raw(self) -> tuple[float, float]:
        """Unrounded ``(value, uncertainty)`` pair."""
        return self.value, self.uncertainty

    @property
    def relative_uncertainty(self) -> Optional[float]:
        """Uncertainty as a fraction of the value, None for a zero value."""
        if self.value == 0:
            return None
        return self.uncertainty / abs(self.value)

    def format(self, separator: str = "±") -> str:
        """Round the value to the first significant digit of its uncertainty."""
        if self.uncertainty == 0 or not math.isfinite(self.uncertainty):
            return f"{self.value:g} {separator} {self.uncertainty:g}"

        exponent = math.floor(math.log10(self.uncertainty))
        error = round(self.uncertainty, -exponent)
        # 0.096 rounds up to 0.1, one digit further left
        if error >= 10 ** (exponent + 1):
            exponent += 1
            error = round(self.uncertainty, -exponent)

        decimals = max(-exponent, 0)
        value = round(self.value, -exponent)
        return f"{value:.{decimals}f} {separator} {error:.{decimals}f}"

    def __str__(self) -> str:
        return self.format()

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "value": self.value,
            "uncertainty": self.uncertainty,
            "sample_count": self.sample_count,
            "relative_uncertainty": self.relative_uncertainty,
            "formatted": self.format(),
        }
