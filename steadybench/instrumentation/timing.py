"""
Timing utilities for taking single benchmark samples.

Provides a manual timer and a context manager around it. Samples are
reported in seconds.
"""

import time
from contextlib import contextmanager
from typing import Iterator


class Timer:
    """Simple timer for manual timing control."""

    def __init__(self, name: str = "timer"):
        self.name = name
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self._running = False

    def start(self) -> "Timer":
        """Start the timer."""
        self.start_time = time.perf_counter()
        self._running = True
        return self

    def stop(self) -> "Timer":
        """Stop the timer."""
        self.end_time = time.perf_counter()
        self._running = False
        return self

    @property
    def elapsed(self) -> float:
        """Elapsed time in seconds."""
        end = self.end_time if not self._running else time.perf_counter()
        return end - self.start_time


@contextmanager
def timed(name: str = "operation") -> Iterator[Timer]:
    """Context manager for timing synchronous operations.

    Usage:
        with timed("spawn") as timer:
            # do work
        sample = timer.elapsed
    """
    timer = Timer(name).start()
    try:
        yield timer
    finally:
        timer.stop()
