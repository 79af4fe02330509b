"""
Error hierarchy — two tiers, infrastructure and assertion.

Infrastructure errors end the run: without a working cluster no
result is meaningful. Verification errors fail one scenario and the
run moves on to the next.
"""

from __future__ import annotations

from typing import Any


class ChartVerifyError(Exception):
    """Base class for every error raised by chartverify."""


class InfrastructureError(ChartVerifyError):
    """Cluster, chart tool or configuration failure. Run-fatal."""


class ConfigError(InfrastructureError):
    """Raised when configuration is invalid or unrecognized."""


class CommandError(ChartVerifyError):
    """An external command exited non-zero (or could not be started)."""

    def __init__(self, command: str, output: str = "", return_code: int | None = None):
        self.command = command
        self.output = output
        self.return_code = return_code
        detail = output or f"exit code {return_code}"
        super().__init__(f"Command failed: {command}: {detail}")


class VerificationError(AssertionError, ChartVerifyError):
    """An assertion over cluster state did not hold.

    Carries the expected value, the actual value and the resource the
    mismatch was observed on, so the scenario report can show all three.
    """

    def __init__(
        self,
        message: str,
        *,
        expected: Any = None,
        actual: Any = None,
        resource: str = "",
    ):
        self.message = message
        self.expected = expected
        self.actual = actual
        self.resource = resource
        super().__init__(message)

    def __str__(self) -> str:
        parts = [f"{self.resource}: {self.message}" if self.resource else self.message]
        if self.expected is not None:
            parts.append(f"expected: {self.expected}")
        if self.actual is not None:
            parts.append(f"actual: {self.actual}")
        return ", ".join(parts)


class ParseError(VerificationError):
    """Command output could not be parsed into the expected structure."""

    def __init__(self, message: str, raw: str = "", *, resource: str = ""):
        self.raw = raw
        super().__init__(message, actual=raw, resource=resource)


class MissingFieldError(ParseError):
    """A parsed document lacks a field the caller requires."""

    def __init__(self, path: str, raw: str = "", *, resource: str = ""):
        self.path = path
        super().__init__(f"expected field '{path}' is missing", raw, resource=resource)


class UnknownResourceKind(VerificationError):
    """No naming convention is known for the requested resource kind."""


class UndefinedStep(ChartVerifyError):
    """A scenario sentence matched no registered step."""
