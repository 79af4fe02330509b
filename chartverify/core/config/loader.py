"""
Configuration loader — defaults, optional chartverify.yml, environment.

Resolution order (later wins):
    built-in defaults  <  chartverify.yml  <  environment variables

Recognized environment variables:
    HELM_VERSION        chart tool major version ("2.x" or "3.x")
    HELM_CHART_VERSION  version of the chart under test
    KUBERNETES_VERSION  kindest/node image version
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from chartverify.core.errors import ConfigError

logger = logging.getLogger(__name__)

# Default config filename
SETTINGS_FILE = "chartverify.yml"

# Fixed by design: one suite, one cluster
DEFAULT_CLUSTER_NAME = "helm-charts-test-suite"

_ENV_OVERRIDES = {
    "HELM_VERSION": "helm_version",
    "HELM_CHART_VERSION": "chart_version",
    "KUBERNETES_VERSION": "kubernetes_version",
}

_LOCAL_PATH_STORAGE = (
    "https://raw.githubusercontent.com/rancher/local-path-provisioner/"
    "master/deploy/local-path-storage.yaml"
)
_ES_KIND_VALUES = (
    "https://raw.githubusercontent.com/elastic/helm-charts/"
    "master/elasticsearch/examples/kubernetes-kind/values.yaml"
)


class InstallProfile(BaseModel):
    """Chart-specific install requirements.

    ``manifests`` are applied with kubectl before the chart is installed;
    ``values`` files and ``wait_timeout`` become helm flags.
    """

    manifests: list[str] = Field(default_factory=list)
    values: list[str] = Field(default_factory=list)
    wait_timeout: int | None = None  # seconds; None = don't wait


class Repository(BaseModel):
    name: str = "elastic"
    url: str = "https://helm.elastic.co"


def _default_profiles() -> dict[str, InstallProfile]:
    # Rancher's local-path storage class backs the Elasticsearch volumes on kind
    return {
        "elasticsearch": InstallProfile(
            manifests=[_LOCAL_PATH_STORAGE],
            values=[_ES_KIND_VALUES],
            wait_timeout=900,
        ),
    }


class Settings(BaseModel):
    """Everything a verification run is configured with."""

    helm_version: str = "2.x"
    chart_version: str = "7.6.1"
    kubernetes_version: str = "1.15.3"
    cluster_name: str = DEFAULT_CLUSTER_NAME
    namespace: str = "default"
    repository: Repository = Field(default_factory=Repository)
    runtime_dependencies: list[str] = Field(default_factory=lambda: ["elasticsearch"])
    install_profiles: dict[str, InstallProfile] = Field(default_factory=_default_profiles)
    required_binaries: list[str] = Field(default_factory=lambda: ["kind", "kubectl", "helm"])

    def profile_for(self, chart: str) -> InstallProfile:
        """Install profile for ``chart`` (empty profile if none configured)."""
        return self.install_profiles.get(chart, InstallProfile())


def find_settings_file(start_dir: Path | None = None) -> Path | None:
    """Search for chartverify.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to chartverify.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / SETTINGS_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def _read_settings_file(path: Path) -> dict:
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading settings from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")
    return data


def load_settings(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
    *,
    search: bool = True,
) -> Settings:
    """Load and validate settings.

    Args:
        path: Explicit path to chartverify.yml. If None and ``search`` is
            set, searches upward from the cwd; a missing file is fine.
        environ: Environment to read overrides from (default: os.environ).
        search: Whether to look for a settings file when ``path`` is None.

    Returns:
        Validated Settings model.

    Raises:
        ConfigError: If the file is invalid or the values fail validation.
    """
    environ = os.environ if environ is None else environ

    if path is None and search:
        path = find_settings_file()

    data = _read_settings_file(path) if path is not None else {}

    for env_name, field_name in _ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value:
            logger.debug("Override %s from $%s", field_name, env_name)
            data[field_name] = value

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings: {e}") from e

    logger.info(
        "Settings: helm %s, chart version %s, kubernetes %s",
        settings.helm_version,
        settings.chart_version,
        settings.kubernetes_version,
    )
    return settings
