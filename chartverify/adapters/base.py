"""
Adapter base — the protocol contract between services and processes.

Every external tool (kind, kubectl, helm) is reached through an
adapter. Services never call subprocess directly, which lets tests
swap in the scripted MockShellExecutor.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from chartverify.core.models.command import Command, Receipt


class Adapter(ABC):
    """Abstract base class for process adapters.

    Adapters run commands and return receipts.
    They NEVER raise for a failing command; failures are captured in
    the Receipt and the caller decides how fatal they are.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier (e.g., 'shell', 'mock')."""

    @abstractmethod
    def is_available(self, binary: str) -> bool:
        """Check whether ``binary`` can be executed by this adapter.

        Should be fast and never raise.
        """

    @abstractmethod
    def execute(self, command: Command) -> Receipt:
        """Execute the command and return a receipt.

        MUST never raise for process failures. Non-zero exits are
        captured in the Receipt with status='failed'.
        """

    def run(self, working_dir: str, binary: str, *args: str) -> Receipt:
        """Shorthand for ``execute(Command(...))``."""
        return self.execute(Command(binary=binary, args=list(args), working_dir=working_dir))

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
