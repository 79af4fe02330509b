"""Outcome model — the reportable result of one scenario step."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from chartverify.core.errors import CommandError, VerificationError


class Outcome(BaseModel):
    """Success, or a failure with expected/actual/resource context."""

    step: str
    ok: bool = True
    message: str = ""
    expected: Any = None
    actual: Any = None
    resource: str = ""

    @property
    def failed(self) -> bool:
        return not self.ok

    @classmethod
    def success(cls, step: str) -> Outcome:
        return cls(step=step)

    @classmethod
    def from_error(cls, step: str, error: Exception) -> Outcome:
        """Build a failed outcome from an assertion or command error."""
        if isinstance(error, VerificationError):
            return cls(
                step=step,
                ok=False,
                message=str(error),
                expected=error.expected,
                actual=error.actual,
                resource=error.resource,
            )
        if isinstance(error, CommandError):
            return cls(
                step=step, ok=False, message=str(error), actual=error.output, resource=error.command,
            )
        return cls(step=step, ok=False, message=str(error))
