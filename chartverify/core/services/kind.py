"""Kind cluster lifecycle — create, check, destroy.

The cluster is a precondition barrier: nothing else runs until
``create`` returns, and every failure here is raised as
InfrastructureError because no test result means anything without it.
"""

from __future__ import annotations

import logging

from chartverify.adapters.base import Adapter
from chartverify.core.errors import CommandError, InfrastructureError
from chartverify.core.models.command import Receipt
from chartverify.core.models.context import ClusterHandle, ClusterState
from chartverify.core.services.helm import HelmManager

logger = logging.getLogger(__name__)

KIND = "kind"


class KindCluster:
    """Owns the one ephemeral cluster of a run.

    State machine: absent → creating → running → destroying → absent.
    """

    def __init__(self, executor: Adapter, helm: HelmManager, working_dir: str = "."):
        self._executor = executor
        self._helm = helm
        self._cwd = working_dir
        self.state = ClusterState.ABSENT
        self.handle: ClusterHandle | None = None

    def _kind(self, *args: str) -> Receipt:
        return self._executor.run(self._cwd, KIND, *args)

    def list_clusters(self) -> list[str]:
        """Names reported by ``kind get clusters``."""
        receipt = self._kind("get", "clusters")
        if receipt.failed:
            raise InfrastructureError(
                f"Could not check the status of the clusters: {receipt.output or receipt.error}"
            )
        # "No kind clusters found." is printed when there are none
        return [
            line.strip()
            for line in receipt.output.splitlines()
            if line.strip() and " " not in line.strip()
        ]

    def is_running(self, name: str) -> bool:
        return name in self.list_clusters()

    def create(self, name: str, kubernetes_version: str) -> ClusterHandle:
        """Create (or reuse) the cluster, then initialise Helm on it.

        Raises:
            InfrastructureError: On any kind or Helm failure.
        """
        handle = ClusterHandle(name=name, kubernetes_version=kubernetes_version)
        self.state = ClusterState.CREATING

        try:
            if self.is_running(name):
                logger.info("Cluster %s already exists, reusing it", name)
            else:
                logger.debug("Creating cluster %s with kind (%s)", name, handle.node_image)
                receipt = self._kind(
                    "create", "cluster", "--name", name, "--image", handle.node_image,
                )
                if receipt.failed:
                    raise InfrastructureError(
                        f"Could not create the cluster {name}: {receipt.output or receipt.error}"
                    )
                if not self.is_running(name):
                    raise InfrastructureError(f"Cluster {name} not listed after creation")
                logger.debug("Cluster %s created: %s", name, receipt.output)
        except InfrastructureError:
            self.state = ClusterState.ABSENT
            raise

        self.state = ClusterState.RUNNING
        self.handle = handle

        # Helm 2's Tiller can only be installed into an existing cluster
        try:
            self._helm.init()
        except CommandError as e:
            raise InfrastructureError(f"Could not initialise Helm {self._helm.version}: {e}") from e

        return handle

    def destroy(self, name: str | None = None) -> None:
        """Delete the cluster. A failure is fatal: a leaked cluster corrupts later runs."""
        name = name or (self.handle.name if self.handle else None)
        if not name:
            raise InfrastructureError("No cluster to destroy")

        self.state = ClusterState.DESTROYING
        logger.debug("Deleting cluster %s", name)
        receipt = self._kind("delete", "cluster", "--name", name)
        if receipt.failed:
            logger.error("Could not destroy the cluster %s: %s", name, receipt.output)
            raise InfrastructureError(
                f"Could not destroy the cluster {name}: {receipt.output or receipt.error}"
            )

        self.state = ClusterState.ABSENT
        self.handle = None
        logger.debug("Cluster %s destroyed", name)
