"""
Shell executor — run an external program and capture its output.

Every other component reaches kind, kubectl and helm through this
adapter. Output is stdout and stderr combined, in the order the
process wrote them.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import time
from collections.abc import Iterable
from pathlib import Path

from chartverify.adapters.base import Adapter
from chartverify.core.models.command import Command, Receipt

logger = logging.getLogger(__name__)


class ShellExecutor(Adapter):
    """Execute commands without a shell and capture combined output.

    No retries and no timeout: long-running tools (cluster creation,
    ``helm install --wait``) are trusted to enforce their own.
    """

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self, binary: str) -> bool:
        return shutil.which(binary) is not None

    def execute(self, command: Command) -> Receipt:
        cwd = command.working_dir or "."
        line = command.line

        if not Path(cwd).is_dir():
            return Receipt.failure(
                command=line,
                error=f"Working directory does not exist: {cwd}",
                return_code=None,
            )

        logger.debug("Executing: %s (cwd=%s)", line, cwd)
        start = time.monotonic()

        try:
            result = subprocess.run(
                command.argv,
                cwd=cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except FileNotFoundError:
            return Receipt.failure(
                command=line,
                error=f"Executable not found: {command.binary}",
                return_code=None,
            )
        except OSError as e:
            return Receipt.failure(
                command=line,
                error=f"Command execution error: {e}",
                return_code=None,
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        output = (result.stdout or "").strip()

        if result.returncode == 0:
            return Receipt.success(
                command=line,
                output=output,
                duration_ms=elapsed_ms,
            )

        logger.debug("Command exited %d: %s", result.returncode, line)
        return Receipt.failure(
            command=line,
            error=f"Command exited with code {result.returncode}",
            output=output,
            return_code=result.returncode,
            duration_ms=elapsed_ms,
        )


def missing_binaries(binaries: Iterable[str], adapter: Adapter | None = None) -> list[str]:
    """Return the binaries from ``binaries`` that cannot be executed."""
    adapter = adapter or ShellExecutor()
    return [b for b in binaries if not adapter.is_available(b)]
