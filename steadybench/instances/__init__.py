"""
Measurable benchmark instances.

Each instance knows how to take one real sample and one overhead sample.
"""

from .base import Instance
from .command import CommandInstance, default_dry_command
from .function import CallableInstance

__all__ = [
    "Instance",
    "CommandInstance",
    "CallableInstance",
    "default_dry_command",
]
