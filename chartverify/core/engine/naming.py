"""
Resource naming — the names the charts give their objects.

The Elastic charts name objects after the release and the chart; with
release == chart that yields ``<chart>-<chart>-<suffix>``. These must
match what Helm renders exactly, so they are pure functions of their
inputs.
"""

from __future__ import annotations

from chartverify.core.errors import UnknownResourceKind

# kind → suffix appended to "<chart>-<chart>"
_RESOURCE_SUFFIXES: dict[str, str] = {
    "ClusterRole": "-cluster-role",
    "ClusterRoleBinding": "-cluster-role-binding",
    "ConfigMap": "-config",
    "ServiceAccount": "",
}


def release_prefix(chart: str) -> str:
    """``<chart>-<chart>``, the prefix of every chart-owned object."""
    return f"{chart}-{chart}".lower()


def derive_resource_name(kind: str, chart: str) -> str:
    """Name of the ``kind`` object the chart creates.

    >>> derive_resource_name("ClusterRole", "metricbeat")
    'metricbeat-metricbeat-cluster-role'
    """
    try:
        suffix = _RESOURCE_SUFFIXES[kind]
    except KeyError:
        raise UnknownResourceKind(
            f"no naming convention for {kind}",
            expected=", ".join(_RESOURCE_SUFFIXES),
            actual=kind,
            resource=kind,
        ) from None
    return release_prefix(chart) + suffix


def known_kinds() -> list[str]:
    return list(_RESOURCE_SUFFIXES)


def full_name(chart: str, version: str) -> str:
    """``'<chart>-<version>'``: lowercase and single-quoted, as the chart label renders."""
    return f"'{chart}-{version}'".lower()


def kube_state_metrics_name(chart: str) -> str:
    """``'<chart>-kube-state-metrics'``: lowercase and single-quoted."""
    return f"'{chart}-kube-state-metrics'".lower()


def metrics_resource_name(chart: str) -> str:
    return release_prefix(chart) + "-metrics"


def app_selector(chart: str) -> str:
    """Label selector of the chart's pods: ``app=<chart>-<chart>``."""
    return f"app={release_prefix(chart)}"


def escape_jsonpath_key(key: str) -> str:
    """Escape dots so a dotted map key is looked up literally."""
    return key.replace(".", r"\.")
