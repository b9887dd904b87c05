"""
Benchmark instance that spawns an external command.
"""

import os
import shutil
import subprocess
import sys
from typing import Optional, Sequence

from ..instrumentation.timing import timed
from .base import Instance


def default_dry_command() -> list[str]:
    """Cheapest process we can spawn to measure launch overhead."""
    true = shutil.which("true")
    if true:
        return [true]
    return [sys.executable, "-c", ""]


class CommandInstance(Instance):
    """Times one execution of an external command per sample.

    Output is discarded. A non-zero exit status raises
    ``subprocess.CalledProcessError``.
    """

    def __init__(
        self,
        command: Sequence[str],
        name: Optional[str] = None,
        dry_command: Optional[Sequence[str]] = None,
        cwd: Optional[str] = None,
        env: Optional[dict] = None,
    ):
        if not command:
            raise ValueError("CommandInstance needs a non-empty command")
        self.command = list(command)
        self.dry_command = list(dry_command) if dry_command else default_dry_command()
        self.cwd = cwd
        self.env = {**os.environ, **env} if env else None
        super().__init__(name or " ".join(self.command))

    def _spawn(self, command: list[str]) -> float:
        with timed(self.name) as timer:
            subprocess.run(
                command,
                check=True,
                cwd=self.cwd,
                env=self.env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        return timer.elapsed

    def fresh_copy(self) -> "CommandInstance":
        clone = super().fresh_copy()
        clone.command = list(self.command)
        clone.dry_command = list(self.dry_command)
        clone.env = dict(self.env) if self.env is not None else None
        return clone

    def single_run(self) -> float:
        return self._spawn(self.command)

    def single_dry_run(self) -> float:
        return self._spawn(self.dry_command)

    def describe(self) -> str:
        return "command: " + " ".join(self.command)
