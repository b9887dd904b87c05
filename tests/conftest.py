"""Shared pytest fixtures for steadybench.

Provides a scripted Instance that replays predetermined samples so the
convergence loop can be tested without real timing noise.
"""

from __future__ import annotations

import itertools
import random
from typing import Callable, Iterable, Optional

import pytest

from steadybench.instances.base import Instance


class ScriptedInstance(Instance):
    """Instance returning samples from iterables instead of timing anything."""

    def __init__(
        self,
        samples: Iterable[float],
        dry_samples: Optional[Iterable[float]] = None,
        name: str = "scripted",
    ):
        super().__init__(name)
        self._samples = iter(samples)
        self._dry_samples = iter(dry_samples if dry_samples is not None else itertools.repeat(0.0))
        self.calls: list[str] = []

    def single_run(self) -> float:
        self.calls.append("run")
        return next(self._samples)

    def single_dry_run(self) -> float:
        self.calls.append("dry")
        return next(self._dry_samples)

    @property
    def run_calls(self) -> int:
        return self.calls.count("run")

    @property
    def dry_calls(self) -> int:
        return self.calls.count("dry")


def gaussian(mu: float, sigma: float, seed: int = 1234) -> Iterable[float]:
    """Endless stream of normally distributed samples."""
    rng = random.Random(seed)
    while True:
        yield rng.gauss(mu, sigma)


@pytest.fixture
def make_instance() -> Callable[..., ScriptedInstance]:
    """Factory for scripted instances."""

    def _make(samples, dry_samples=None, name="scripted") -> ScriptedInstance:
        return ScriptedInstance(samples, dry_samples=dry_samples, name=name)

    return _make


@pytest.fixture
def constant_instance(make_instance) -> ScriptedInstance:
    return make_instance(itertools.repeat(5.0), itertools.repeat(0.5))
