"""
Mock executor — scripted test double for the shell adapter.

Responses are registered against an argv prefix; the longest matching
prefix wins, the latest registration on ties. Every command is
recorded so tests can assert on what was run and in which order.
"""

from __future__ import annotations

from chartverify.adapters.base import Adapter
from chartverify.core.models.command import Command, Receipt


class MockShellExecutor(Adapter):
    """Universal mock executor for testing.

    By default, every command succeeds with empty output. Use
    ``set_output`` / ``set_failure`` to script specific commands.
    """

    def __init__(
        self,
        adapter_name: str = "mock",
        available: bool | set[str] = True,
        default_output: str = "",
    ):
        self._name = adapter_name
        self._available = available
        self._default_output = default_output
        self._responses: list[tuple[tuple[str, ...], Receipt]] = []
        self._call_log: list[Command] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[Command]:
        """All commands this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    @property
    def argvs(self) -> list[list[str]]:
        """Recorded commands as argv lists."""
        return [c.argv for c in self._call_log]

    def is_available(self, binary: str) -> bool:
        if isinstance(self._available, bool):
            return self._available
        return binary in self._available

    def set_output(self, *argv: str, output: str = "") -> None:
        """Make commands starting with ``argv`` succeed with ``output``."""
        self._responses.append(
            (tuple(argv), Receipt.success(command=" ".join(argv), output=output))
        )

    def set_failure(self, *argv: str, output: str = "Mock failure", return_code: int = 1) -> None:
        """Make commands starting with ``argv`` exit non-zero."""
        self._responses.append(
            (
                tuple(argv),
                Receipt.failure(
                    command=" ".join(argv),
                    error=f"Command exited with code {return_code}",
                    output=output,
                    return_code=return_code,
                ),
            )
        )

    def execute(self, command: Command) -> Receipt:
        self._call_log.append(command)
        argv = tuple(command.argv)

        best: Receipt | None = None
        best_len = -1
        for prefix, receipt in self._responses:
            if argv[: len(prefix)] == prefix and len(prefix) >= best_len:
                best, best_len = receipt, len(prefix)

        if best is not None:
            return best.model_copy(update={"command": command.line})

        return Receipt.success(
            command=command.line,
            output=self._default_output,
            metadata={"mock": True},
        )

    def reset(self) -> None:
        """Clear call log and scripted responses."""
        self._call_log.clear()
        self._responses.clear()
