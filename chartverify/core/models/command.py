"""
Command and Receipt models — the process execution contract.

Commands describe an external program invocation. Receipts describe
what happened. Adapters take Commands and return Receipts, never
exceptions; callers decide whether a failed Receipt is fatal.
"""

from __future__ import annotations

import shlex
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from chartverify.core.errors import CommandError


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Command(BaseModel):
    """An external program invocation.

    Arguments are positional and passed without a shell, so no
    quoting is applied to them.
    """

    binary: str                     # e.g. "kubectl", "helm", "kind"
    args: list[str] = Field(default_factory=list)
    working_dir: str = "."

    @property
    def argv(self) -> list[str]:
        return [self.binary, *self.args]

    @property
    def line(self) -> str:
        """Printable command line, for logs and error messages."""
        return shlex.join(self.argv)


class Receipt(BaseModel):
    """Result of running a Command.

    ``output`` holds stdout and stderr combined, with only surrounding
    whitespace stripped.
    """

    command: str
    status: Literal["ok", "failed"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    return_code: int | None = 0
    error: str | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the command exited zero."""
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    def raise_for_status(self) -> Receipt:
        """Raise CommandError if the command failed, else return self."""
        if self.failed:
            raise CommandError(self.command, self.output or self.error or "", self.return_code)
        return self

    @classmethod
    def success(cls, command: str, output: str = "", **kwargs: Any) -> Receipt:
        """Create a success receipt."""
        return cls(command=command, status="ok", output=output, **kwargs)

    @classmethod
    def failure(
        cls,
        command: str,
        error: str,
        output: str = "",
        return_code: int | None = 1,
        **kwargs: Any,
    ) -> Receipt:
        """Create a failure receipt."""
        return cls(
            command=command,
            status="failed",
            error=error,
            output=output,
            return_code=return_code,
            **kwargs,
        )
