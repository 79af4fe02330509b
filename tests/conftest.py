"""
Shared test fixtures and configuration.
"""

import logging
from pathlib import Path

import pytest

from chartverify.adapters.mock import MockShellExecutor
from chartverify.core.config.loader import Settings
from chartverify.core.engine.verifier import ChartVerifier
from chartverify.core.models.context import TestContext


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def shell() -> MockShellExecutor:
    """Scripted executor; every command succeeds with no output by default."""
    return MockShellExecutor()


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def helm3_settings() -> Settings:
    return Settings(helm_version="3.x")


@pytest.fixture
def verifier(settings: Settings, shell: MockShellExecutor) -> ChartVerifier:
    return ChartVerifier.from_settings(settings, executor=shell)


@pytest.fixture
def ctx(verifier: ChartVerifier) -> TestContext:
    """Context with metricbeat 7.6.1 as the chart under test."""
    context = verifier.new_context()
    context.name = "metricbeat"
    return context


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """No settings file above the cwd and no overrides in the environment."""
    for name in ("HELM_VERSION", "HELM_CHART_VERSION", "KUBERNETES_VERSION",
                 "CHARTVERIFY_LOG_LEVEL", "CHARTVERIFY_LOG_FILE", "CHARTVERIFY_LOG_FILE_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """setup_logging replaces the root handlers; put them back."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
