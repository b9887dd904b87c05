"""
Benchmark instance wrapping an in-process Python callable.
"""

from typing import Callable, Optional

from ..instrumentation.timing import timed
from .base import Instance


def _noop(*args, **kwargs) -> None:
    return None


class CallableInstance(Instance):
    """Times one call of ``fn(*args, **kwargs)`` per sample.

    The dry run calls a no-op with the same arguments, so argument passing
    and timer overhead end up in the baseline.
    """

    def __init__(self, fn: Callable, *args, name: Optional[str] = None, **kwargs):
        if not callable(fn):
            raise TypeError(f"Expected a callable, got {type(fn).__name__}")
        self.fn = fn
        self.args = args
        self.kwargs = kwargs
        super().__init__(name or getattr(fn, "__name__", repr(fn)))

    def _call(self, fn: Callable) -> float:
        with timed(self.name) as timer:
            fn(*self.args, **self.kwargs)
        return timer.elapsed

    def fresh_copy(self) -> "CallableInstance":
        clone = super().fresh_copy()
        clone.kwargs = dict(self.kwargs)
        return clone

    def single_run(self) -> float:
        return self._call(self.fn)

    def single_dry_run(self) -> float:
        return self._call(_noop)

    def describe(self) -> str:
        return f"callable: {self.name}"
