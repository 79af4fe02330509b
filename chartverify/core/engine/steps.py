"""
Step registry — scenario sentences bound to verifier procedures.

Sentences are matched in registration order; quoted parameters may use
double or single quotes. ``run`` never lets an assertion failure
escape: it comes back as a failed Outcome, so one bad scenario does
not end the run. InfrastructureError does escape.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

from chartverify.core.engine.verifier import ChartVerifier
from chartverify.core.errors import CommandError, UndefinedStep, VerificationError
from chartverify.core.models.context import TestContext
from chartverify.core.models.outcome import Outcome

logger = logging.getLogger(__name__)

# A quoted sentence parameter: "value" or 'value'
_Q = r"""["']([^"']*)["']"""

StepFn = Callable[..., None]


@dataclass(frozen=True)
class Step:
    pattern: str
    regex: re.Pattern[str]
    procedure: StepFn

    def match(self, sentence: str) -> re.Match[str] | None:
        return self.regex.fullmatch(sentence.strip())


class StepRegistry:
    """Ordered table of sentence patterns."""

    def __init__(self) -> None:
        self._steps: list[Step] = []

    def step(self, pattern: str, procedure: StepFn) -> None:
        """Register ``procedure`` for sentences matching ``pattern``.

        ``{q}`` in the pattern stands for one quoted parameter.
        """
        regex = re.compile(pattern.replace("{q}", _Q))
        self._steps.append(Step(pattern, regex, procedure))

    @property
    def patterns(self) -> list[str]:
        return [s.pattern.replace("{q}", '"…"') for s in self._steps]

    def resolve(self, sentence: str) -> tuple[StepFn, tuple[str, ...]]:
        for step in self._steps:
            m = step.match(sentence)
            if m is not None:
                return step.procedure, m.groups()
        raise UndefinedStep(f"No step matches: {sentence!r}")

    def run(self, ctx: TestContext, sentence: str) -> Outcome:
        """Run one sentence against ``ctx``.

        Raises:
            UndefinedStep: If no pattern matches.
            InfrastructureError: If the cluster or tooling broke.
        """
        procedure, args = self.resolve(sentence)
        logger.debug("Step: %s %s", sentence, args)
        try:
            procedure(ctx, *args)
        except (VerificationError, CommandError) as e:
            logger.info("Step failed: %s: %s", sentence, e)
            return Outcome.from_error(sentence, e)
        return Outcome.success(sentence)


def build_registry(verifier: ChartVerifier) -> StepRegistry:
    """The sentence catalogue of the Helm chart feature files."""
    reg = StepRegistry()
    v = verifier

    reg.step(r"a cluster is running", v.a_cluster_is_running)
    reg.step(r"the {q} Elastic's helm chart is installed", v.chart_is_installed)
    reg.step(r"the {q} chart is installed", v.chart_is_installed)
    reg.step(
        r"a pod will be deployed on each node of the cluster by a DaemonSet",
        v.pods_managed_by_daemonset,
    )
    reg.step(
        r"a {q} will manage additional pods for metricsets querying internal services",
        v.resource_manages_additional_pods_for_metricsets,
    )
    reg.step(r"a {q} chart will retrieve specific Kubernetes metrics", v.will_retrieve_specific_metrics)
    reg.step(r"a {q} resource contains the {q} key", v.resource_contains_key)
    reg.step(r"a {q} resource manages RBAC", v.resource_manages_rbac)
    reg.step(r"the {q} volume is mounted at {q} with subpath {q}", v.volume_mounted_with_subpath)
    reg.step(r"the {q} volume is mounted at {q} with no subpath", v.volume_mounted_with_no_subpath)
    reg.step(r"a {q} which will manage the pods", v.resource_will_manage_pods)
    reg.step(
        r"a {q} which will expose the pods as network services internal to the k8s cluster",
        v.resource_will_expose_pods,
    )
    return reg
