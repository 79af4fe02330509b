"""
Fixtures for the live suite — one kind cluster per session.

The cluster is created before the first scenario and destroyed after
the last one. A failure in either is fatal for the whole session.
"""

import os

import pytest

from chartverify.adapters.shell.command import missing_binaries
from chartverify.core.config.loader import load_settings
from chartverify.core.engine.steps import StepRegistry, build_registry
from chartverify.core.engine.verifier import ChartVerifier
from chartverify.core.errors import InfrastructureError
from chartverify.core.models.context import TestContext
from chartverify.core.observability.logging_config import setup_from_environment

E2E_ENV = "CHARTVERIFY_E2E"


def pytest_collection_modifyitems(config, items):
    if os.environ.get(E2E_ENV) == "1":
        missing = missing_binaries(["kind", "kubectl", "helm"])
        reason = f"missing binaries: {', '.join(missing)}" if missing else None
    else:
        reason = f"set {E2E_ENV}=1 to run against a live kind cluster"

    if reason:
        skip = pytest.mark.skip(reason=reason)
        for item in items:
            if "e2e" in item.keywords:
                item.add_marker(skip)


@pytest.fixture(scope="session")
def suite_verifier() -> ChartVerifier:
    setup_from_environment()
    try:
        return ChartVerifier.from_settings(load_settings())
    except InfrastructureError as e:
        pytest.exit(f"Aborting: {e}", returncode=2)


@pytest.fixture(scope="session")
def suite_context(suite_verifier: ChartVerifier):
    ctx = suite_verifier.new_context()
    try:
        suite_verifier.before_suite(ctx)
    except InfrastructureError as e:
        pytest.exit(f"Aborting: {e}", returncode=1)

    yield ctx

    try:
        suite_verifier.after_suite(ctx)
    except InfrastructureError as e:
        pytest.exit(f"Aborting: {e}", returncode=1)


@pytest.fixture(scope="session")
def registry(suite_verifier: ChartVerifier) -> StepRegistry:
    return build_registry(suite_verifier)


@pytest.fixture
def scenario_context(suite_verifier: ChartVerifier, suite_context: TestContext):
    suite_verifier.before_scenario(suite_context)
    yield suite_context
    suite_verifier.after_scenario(suite_context)
