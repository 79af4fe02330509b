"""
Run-scoped models — test context, cluster handle, resource descriptors.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel


class TestContext(BaseModel):
    """Mutable state of one verification run.

    Passed explicitly to every step. ``name`` changes whenever a chart
    is installed and is cleared by ``reset()`` after each scenario.
    """

    __test__ = False  # not a pytest test class

    cluster_name: str
    kubernetes_version: str
    name: str = ""       # chart under test
    version: str         # chart version under test

    def reset(self) -> None:
        """Forget the chart of the finished scenario."""
        self.name = ""


class ClusterState(StrEnum):
    """Lifecycle of the ephemeral cluster: absent → creating → running → destroying → absent."""

    ABSENT = "absent"
    CREATING = "creating"
    RUNNING = "running"
    DESTROYING = "destroying"


class ClusterHandle(BaseModel):
    """A named, versioned ephemeral cluster."""

    name: str
    kubernetes_version: str

    @property
    def node_image(self) -> str:
        return f"kindest/node:v{self.kubernetes_version}"


class ResourceDescriptor(BaseModel):
    """Addresses a Kubernetes object (or group of objects)."""

    kind: str
    name: str = ""
    namespace: str = "default"
    selector: str = ""

    def describe(self) -> str:
        """Short label used in failure messages, e.g. ``ClusterRole/x``."""
        if self.name:
            return f"{self.kind}/{self.name}"
        if self.selector:
            return f"{self.kind} with selector {self.selector}"
        return self.kind
