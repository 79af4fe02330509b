"""
Chart verifier — the assertions run against an installed chart.

Every step has the same shape: derive the resource to look at from the
TestContext, query it through kubectl, compare actual with expected,
raise VerificationError on a mismatch. Steps receive the context
explicitly; the verifier itself only holds the collaborators.

Suite lifecycle:
    before_suite   → tools check, cluster create (+ Helm init), repo, dependencies
    after_scenario → delete the chart under test, reset the context
    after_suite    → destroy the cluster
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any

from chartverify.adapters.base import Adapter
from chartverify.adapters.shell.command import ShellExecutor, missing_binaries
from chartverify.core.config.loader import Settings
from chartverify.core.engine import naming
from chartverify.core.engine.volumes import VolumeMounts
from chartverify.core.errors import CommandError, InfrastructureError, VerificationError
from chartverify.core.models.context import ResourceDescriptor, TestContext
from chartverify.core.services.helm import HelmManager, helm_factory
from chartverify.core.services.kind import KindCluster
from chartverify.core.services.kubectl import Kubectl, StructuredResult

logger = logging.getLogger(__name__)

# Values kubectl describe prints for an empty endpoint list
_NO_ENDPOINTS = frozenset({"", "<none>"})


def check_minimum(items: Sequence[Any], minimum: int, descriptor: ResourceDescriptor) -> None:
    """Fail unless at least ``minimum`` items were found."""
    if len(items) < minimum:
        raise VerificationError(
            f"fewer than {minimum} {descriptor.kind} found",
            expected=f">= {minimum}",
            actual=len(items),
            resource=descriptor.describe(),
        )


def split_endpoints(value: str) -> list[str]:
    """``"10.0.0.1:80,10.0.0.2:80"`` → list; ``<none>`` → empty."""
    return [e.strip() for e in value.split(",") if e.strip() not in _NO_ENDPOINTS]


class ChartVerifier:
    """Orchestrates chart installation and evaluates assertions."""

    def __init__(
        self,
        settings: Settings,
        kubectl: Kubectl,
        helm: HelmManager,
        cluster: KindCluster,
        executor: Adapter | None = None,
    ):
        self.settings = settings
        self.kubectl = kubectl
        self.helm = helm
        self.cluster = cluster
        self.executor = executor

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        executor: Adapter | None = None,
        working_dir: str = ".",
    ) -> ChartVerifier:
        """Wire the real collaborators.

        Raises:
            ConfigError: If the configured Helm version is unsupported.
        """
        executor = executor or ShellExecutor()
        helm = helm_factory(settings.helm_version, executor, working_dir)
        kubectl = Kubectl(executor, namespace=settings.namespace, working_dir=working_dir)
        cluster = KindCluster(executor, helm, working_dir)
        return cls(settings, kubectl, helm, cluster, executor)

    def new_context(self) -> TestContext:
        return TestContext(
            cluster_name=self.settings.cluster_name,
            kubernetes_version=self.settings.kubernetes_version,
            version=self.settings.chart_version,
        )

    # ── Helpers ─────────────────────────────────────────────────────

    def _descriptor(self, kind: str, name: str = "", selector: str = "") -> ResourceDescriptor:
        return ResourceDescriptor(
            kind=kind, name=name, namespace=self.settings.namespace, selector=selector,
        )

    @contextmanager
    def _querying(self, descriptor: ResourceDescriptor) -> Iterator[None]:
        """Turn kubectl failures into assertion failures on ``descriptor``."""
        try:
            yield
        except CommandError as e:
            raise VerificationError(
                "query failed",
                actual=e.output or str(e),
                resource=descriptor.describe(),
            ) from e

    def _expect_equal(self, descriptor: ResourceDescriptor, expected: str, actual: str) -> None:
        if actual != expected:
            raise VerificationError(
                "unexpected value",
                expected=expected,
                actual=actual,
                resource=descriptor.describe(),
            )

    def _expect_non_empty(self, descriptor: ResourceDescriptor, actual: str, what: str) -> None:
        if not actual:
            raise VerificationError(f"{what} is empty", resource=descriptor.describe())

    def _deployment_selector(self, ctx: TestContext) -> str:
        descriptor = self._descriptor("deployment", naming.release_prefix(ctx.name))
        with self._querying(descriptor):
            return self.kubectl.get_resource_selector("deployment", descriptor.name)

    # ── Installation ────────────────────────────────────────────────

    def _install(self, chart: str, version: str) -> None:
        profile = self.settings.profile_for(chart)

        for manifest in profile.manifests:
            self.kubectl.apply(manifest)

        flags: list[str] = []
        if profile.wait_timeout is not None:
            flags += ["--wait", self.helm.timeout_flag(profile.wait_timeout)]
        for values in profile.values:
            flags += ["--values", values]

        chart_ref = f"{self.settings.repository.name}/{chart}"
        self.helm.install_chart(chart, chart_ref, version, flags)
        logger.info("Chart %s %s installed", chart_ref, version)

    def add_repository(self) -> None:
        repo = self.settings.repository
        try:
            self.helm.add_repo(repo.name, repo.url)
        except CommandError as e:
            raise InfrastructureError(f"Could not add Helm repo {repo.name}: {e}") from e

    def install_runtime_dependencies(self, ctx: TestContext, dependencies: Sequence[str]) -> None:
        """Install charts the chart under test needs. Failures are fatal."""
        for dependency in dependencies:
            try:
                self._install(dependency, ctx.version)
            except CommandError as e:
                raise InfrastructureError(
                    f"Could not install {dependency} as runtime dependency: {e}"
                ) from e

    # ── Lifecycle hooks ─────────────────────────────────────────────

    def check_tools(self) -> None:
        missing = missing_binaries(self.settings.required_binaries, self.executor)
        if missing:
            raise InfrastructureError(f"Required binaries not installed: {', '.join(missing)}")

    def before_suite(self, ctx: TestContext) -> None:
        logger.debug("Before suite...")
        self.check_tools()
        self.cluster.create(ctx.cluster_name, ctx.kubernetes_version)
        self.add_repository()
        self.install_runtime_dependencies(ctx, self.settings.runtime_dependencies)

    def before_scenario(self, ctx: TestContext) -> None:
        logger.info("Before Helm scenario...")

    def after_scenario(self, ctx: TestContext) -> None:
        """Delete the chart under test (best effort) and reset the context."""
        logger.debug("After Helm scenario...")
        if ctx.name:
            self.helm.delete_chart(ctx.name)
        ctx.reset()

    def after_suite(self, ctx: TestContext) -> None:
        logger.debug("After suite...")
        self.cluster.destroy(ctx.cluster_name)

    # ── Steps ───────────────────────────────────────────────────────

    def a_cluster_is_running(self, ctx: TestContext) -> None:
        if not self.cluster.is_running(ctx.cluster_name):
            raise VerificationError(
                "the cluster is not running",
                expected=ctx.cluster_name,
                actual=self.cluster.list_clusters(),
                resource=f"cluster/{ctx.cluster_name}",
            )
        logger.debug("Cluster %s is running", ctx.cluster_name)

    def chart_is_installed(self, ctx: TestContext, chart: str) -> None:
        ctx.name = chart
        try:
            self._install(chart, ctx.version)
        except CommandError as e:
            raise VerificationError(
                "chart installation failed",
                expected=f"{chart} {ctx.version} installed",
                actual=e.output or str(e),
                resource=f"release/{chart}",
            ) from e

    def pods_managed_by_daemonset(self, ctx: TestContext) -> None:
        """The chart's pods come from a DaemonSet labelled with the chart."""
        selector = naming.app_selector(ctx.name)
        descriptor = self._descriptor("DaemonSet", selector=selector)
        with self._querying(descriptor):
            output = self.kubectl.run(
                "get", "daemonset", f"--namespace={descriptor.namespace}", "-l", selector,
                "-o", "jsonpath='{.items[0].metadata.labels.chart}'",
            )
        self._expect_equal(descriptor, naming.full_name(ctx.name, ctx.version), output)
        logger.debug("A pod will be deployed on each node of the cluster by a DaemonSet")

    def resource_manages_additional_pods_for_metricsets(self, ctx: TestContext, resource: str) -> None:
        descriptor = self._descriptor(resource, naming.metrics_resource_name(ctx.name))
        with self._querying(descriptor):
            output = self.kubectl.jsonpath(
                resource.lower(), descriptor.name, "'{.metadata.labels.chart}'",
            )
        self._expect_equal(descriptor, naming.full_name(ctx.name, ctx.version), output)
        logger.debug("A %s will manage additional pods for metricsets", resource)

    def will_retrieve_specific_metrics(self, ctx: TestContext, chart: str = "kube-state-metrics") -> None:
        """The kube-state-metrics Deployment is named after the chart."""
        descriptor = self._descriptor("Deployment", f"{ctx.name}-kube-state-metrics")
        with self._querying(descriptor):
            output = self.kubectl.jsonpath("deployment", descriptor.name, "'{.metadata.name}'")
        self._expect_equal(descriptor, naming.kube_state_metrics_name(ctx.name), output)
        logger.debug("A %s chart will retrieve specific Kubernetes metrics", chart)

    def resource_contains_key(self, ctx: TestContext, resource: str, key: str) -> None:
        descriptor = self._descriptor(resource, naming.derive_resource_name(resource, ctx.name))
        template = "{.data['" + naming.escape_jsonpath_key(key) + "']}"
        with self._querying(descriptor):
            output = self.kubectl.jsonpath(resource.lower(), descriptor.name, template)
        self._expect_non_empty(descriptor, output, f"key '{key}'")
        logger.debug("%s contains the %s key", descriptor.describe(), key)

    def resource_manages_rbac(self, ctx: TestContext, resource: str) -> None:
        descriptor = self._descriptor(resource, naming.derive_resource_name(resource, ctx.name))
        with self._querying(descriptor):
            output = self.kubectl.jsonpath(
                resource.lower(), descriptor.name, "{.metadata.labels.chart}",
            )
        self._expect_non_empty(descriptor, output, "chart label")
        logger.debug("%s manages K8S RBAC", descriptor.describe())

    def volume_mounts(self, ctx: TestContext) -> VolumeMounts:
        """Mounts of the first container of the first pod of the chart."""
        selector = naming.app_selector(ctx.name)
        descriptor = self._descriptor("pods", selector=selector)
        with self._querying(descriptor):
            pods = self.kubectl.get_resources_by_selector("pods", selector)

        check_minimum(pods.items(), 1, descriptor)
        first = StructuredResult(pods.items()[0], pods.raw, descriptor.describe())
        pod_name = first.get("metadata.name")
        container = first.require("spec.containers.0")
        resource = f"pods/{pod_name}" if pod_name else descriptor.describe()
        return VolumeMounts.from_container(container, resource=resource)

    def volume_mounted_with_subpath(
        self, ctx: TestContext, name: str, mount_path: str, sub_path: str | None = None,
    ) -> None:
        self.volume_mounts(ctx).verify(name, mount_path, sub_path)
        logger.debug("Volume %s found at %s (subPath=%r)", name, mount_path, sub_path)

    def volume_mounted_with_no_subpath(self, ctx: TestContext, name: str, mount_path: str) -> None:
        self.volume_mounted_with_subpath(ctx, name, mount_path, "")

    def check_resources(
        self, ctx: TestContext, kind: str, selector: str, minimum: int,
    ) -> list[Any]:
        descriptor = self._descriptor(kind, selector=selector)
        with self._querying(descriptor):
            items = self.kubectl.get_resources_by_selector(kind, selector).items()
        check_minimum(items, minimum, descriptor)
        logger.debug("Found %d %s with selector %s", len(items), kind, selector)
        return items

    def resource_will_manage_pods(self, ctx: TestContext, resource: str) -> None:
        selector = self._deployment_selector(ctx)
        self.check_resources(ctx, resource, selector, 1)

    def resource_will_expose_pods(self, ctx: TestContext, resource: str) -> None:
        selector = self._deployment_selector(ctx)
        descriptor = self._descriptor(resource, selector=selector)
        with self._querying(descriptor):
            described = self.kubectl.describe(resource, selector)

        endpoints = split_endpoints(str(described.require("Endpoints")))
        if not endpoints:
            raise VerificationError(
                "no endpoints exposed",
                actual=described.get("Endpoints"),
                resource=descriptor.describe(),
            )
        logger.debug("%s exposes %s", descriptor.describe(), endpoints)
