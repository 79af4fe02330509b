"""Adapters — process bindings for kind, kubectl and helm.

Public re-exports for convenient access.
"""

from chartverify.adapters.base import Adapter
from chartverify.adapters.mock import MockShellExecutor
from chartverify.adapters.shell.command import ShellExecutor, missing_binaries

__all__ = [
    "Adapter",
    "MockShellExecutor",
    "ShellExecutor",
    "missing_binaries",
]
