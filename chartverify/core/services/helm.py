"""Helm operations — repo add, init, install, delete.

Helm 2 and Helm 3 disagree on install syntax and on whether a
server-side component (Tiller) must be bootstrapped, so each major
version gets its own implementation of the ``HelmManager`` protocol.
``helm_factory`` picks one from the configured version string.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from chartverify.adapters.base import Adapter
from chartverify.core.errors import ConfigError

logger = logging.getLogger(__name__)

HELM = "helm"


@runtime_checkable
class HelmManager(Protocol):
    """Capabilities every supported Helm major version provides."""

    version: str

    def add_repo(self, name: str, url: str) -> None: ...

    def init(self) -> None: ...

    def install_chart(
        self, release: str, chart: str, version: str, flags: Sequence[str] = ()
    ) -> None: ...

    def delete_chart(self, release: str) -> bool: ...

    def timeout_flag(self, seconds: int) -> str: ...


def _run_helm(executor: Adapter, working_dir: str, *args: str) -> str:
    """Run ``helm <args>``; raise CommandError on failure."""
    receipt = executor.run(working_dir, HELM, *args)
    receipt.raise_for_status()
    return receipt.output


class Helm2:
    """Helm 2.x — needs Tiller, installs with ``--name``."""

    version = "2.x"

    def __init__(self, executor: Adapter, working_dir: str = "."):
        self._executor = executor
        self._cwd = working_dir

    def add_repo(self, name: str, url: str) -> None:
        _run_helm(self._executor, self._cwd, "repo", "add", name, url)
        logger.debug("Helm repo %s added (%s)", name, url)

    def init(self) -> None:
        # Tiller lives in the cluster: only valid once the cluster exists
        _run_helm(self._executor, self._cwd, "init", "--wait")
        logger.debug("Tiller initialised")

    def install_chart(
        self, release: str, chart: str, version: str, flags: Sequence[str] = ()
    ) -> None:
        output = _run_helm(
            self._executor, self._cwd,
            "install", chart, "--name", release, "--version", version, *flags,
        )
        logger.debug("Chart %s %s installed as %s: %s", chart, version, release, output)

    def delete_chart(self, release: str) -> bool:
        receipt = self._executor.run(self._cwd, HELM, "delete", "--purge", release)
        if receipt.failed:
            logger.error("Could not delete chart %s: %s", release, receipt.output or receipt.error)
            return False
        logger.debug("Chart %s deleted", release)
        return True

    def timeout_flag(self, seconds: int) -> str:
        return f"--timeout={seconds}"

    def __repr__(self) -> str:
        return f"<Helm2 version={self.version!r}>"


class Helm3:
    """Helm 3.x — client only, positional release name."""

    version = "3.x"

    def __init__(self, executor: Adapter, working_dir: str = "."):
        self._executor = executor
        self._cwd = working_dir

    def add_repo(self, name: str, url: str) -> None:
        _run_helm(self._executor, self._cwd, "repo", "add", name, url)
        _run_helm(self._executor, self._cwd, "repo", "update")
        logger.debug("Helm repo %s added (%s)", name, url)

    def init(self) -> None:
        logger.debug("Helm 3 has no server-side component, nothing to initialise")

    def install_chart(
        self, release: str, chart: str, version: str, flags: Sequence[str] = ()
    ) -> None:
        output = _run_helm(
            self._executor, self._cwd,
            "install", release, chart, "--version", version, *flags,
        )
        logger.debug("Chart %s %s installed as %s: %s", chart, version, release, output)

    def delete_chart(self, release: str) -> bool:
        receipt = self._executor.run(self._cwd, HELM, "delete", release)
        if receipt.failed:
            logger.error("Could not delete chart %s: %s", release, receipt.output or receipt.error)
            return False
        logger.debug("Chart %s deleted", release)
        return True

    def timeout_flag(self, seconds: int) -> str:
        return f"--timeout={seconds}s"

    def __repr__(self) -> str:
        return f"<Helm3 version={self.version!r}>"


_VARIANTS: dict[str, type[Helm2] | type[Helm3]] = {
    "2": Helm2,
    "3": Helm3,
}

_MAJOR = re.compile(r"^v?(?P<major>\d+)(?:\.(?:x|\d+))*$")


def helm_factory(version: str, executor: Adapter, working_dir: str = ".") -> HelmManager:
    """Build the HelmManager matching ``version`` ("2.x", "3.x", "v3", "3.1.2", ...).

    Raises:
        ConfigError: If the version is not a supported Helm major.
    """
    m = _MAJOR.match(version.strip())
    cls = _VARIANTS.get(m.group("major")) if m else None
    if cls is None:
        raise ConfigError(
            f"Unsupported Helm version '{version}'. Supported: "
            + ", ".join(f"{major}.x" for major in _VARIANTS)
        )
    logger.debug("Using %s for Helm version %s", cls.__name__, version)
    return cls(executor, working_dir)
