"""
Robust statistics over benchmark samples.

Only what the convergence loop needs: mean, median and the scaled median
absolute deviation (MAD). All functions are pure and take any non-empty
sequence of floats.
"""

import math
from dataclasses import dataclass
from typing import Callable, Sequence, Union

from ..errors import ConfigError

# Makes the MAD a consistent estimator of the standard deviation for
# normally distributed data.
MAD_SCALE = 1.4826

VariabilityMeasure = Callable[[Sequence[float]], float]


def _require_samples(samples: Sequence[float], what: str) -> None:
    if len(samples) == 0:
        raise ValueError(f"{what} requires at least one sample")


def mean(samples: Sequence[float]) -> float:
    """Arithmetic mean."""
    _require_samples(samples, "mean")
    return math.fsum(samples) / len(samples)


def median(samples: Sequence[float]) -> float:
    """Middle value of the sorted samples, averaging the two central
    values for an even count."""
    _require_samples(samples, "median")
    ordered = sorted(samples)
    mid = len(ordered) // 2
    if len(ordered) % 2:
        return ordered[mid]
    return (ordered[mid - 1] + ordered[mid]) / 2


def mad(samples: Sequence[float]) -> float:
    """Median absolute deviation from the median, scaled by MAD_SCALE.

    A single sample (or any constant input) gives 0.
    """
    _require_samples(samples, "mad")
    center = median(samples)
    return median([abs(x - center) for x in samples]) * MAD_SCALE


VARIABILITY_MEASURES: dict[str, VariabilityMeasure] = {
    "mad": mad,
}


def resolve_variability_measure(
    measure: Union[str, VariabilityMeasure],
) -> VariabilityMeasure:
    """Turn a registered name or a callable into a variability function."""
    if callable(measure):
        return measure
    try:
        return VARIABILITY_MEASURES[measure]
    except (KeyError, TypeError):
        known = ", ".join(sorted(VARIABILITY_MEASURES))
        raise ConfigError(
            f"Unknown variability measure {measure!r} (known: {known})"
        ) from None


@dataclass(frozen=True)
class SampleStats:
    """Snapshot of the statistics of one sample list."""

    count: int
    mean: float
    median: float
    mad: float

    @classmethod
    def from_samples(cls, samples: Sequence[float]) -> "SampleStats":
        return cls(
            count=len(samples),
            mean=mean(samples),
            median=median(samples),
            mad=mad(samples),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "count": self.count,
            "mean": self.mean,
            "median": self.median,
            "mad": self.mad,
        }
