"""Kubectl client — structured queries against the live cluster.

Every call goes through the shell adapter. JSON output is wrapped in a
``StructuredResult`` so a missing field is an explicit error carrying
the raw text, never a silent default.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from chartverify.adapters.base import Adapter
from chartverify.core.errors import MissingFieldError, ParseError

logger = logging.getLogger(__name__)

KUBECTL = "kubectl"

_MISSING = object()

# Top-level "Key:   value" line of `kubectl describe`
_DESCRIBE_FIELD = re.compile(r"^(?P<key>[A-Za-z][\w .-]*?):(?:\s+(?P<value>.*))?$")


class StructuredResult:
    """Parsed command output plus the raw text it came from."""

    def __init__(self, data: Any, raw: str = "", resource: str = ""):
        self.data = data
        self.raw = raw
        self.resource = resource

    @classmethod
    def from_json(cls, raw: str, resource: str = "") -> StructuredResult:
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise ParseError(f"malformed JSON output: {e}", raw, resource=resource) from e
        return cls(data, raw, resource)

    def _lookup(self, path: str) -> Any:
        node = self.data
        for part in path.split(".") if path else []:
            if isinstance(node, dict) and part in node:
                node = node[part]
            elif isinstance(node, list) and part.isdigit() and int(part) < len(node):
                node = node[int(part)]
            else:
                return _MISSING
        return node

    def get(self, path: str, default: Any = None) -> Any:
        """Value at dotted ``path``, or ``default`` when absent."""
        value = self._lookup(path)
        return default if value is _MISSING else value

    def require(self, path: str) -> Any:
        """Value at dotted ``path``; raises MissingFieldError when absent."""
        value = self._lookup(path)
        if value is _MISSING:
            raise MissingFieldError(path, self.raw, resource=self.resource)
        return value

    def items(self) -> list[Any]:
        """The ``items`` list of a kubectl List document."""
        items = self.require("items")
        if not isinstance(items, list):
            raise ParseError("'items' is not a list", self.raw, resource=self.resource)
        return items

    def __getitem__(self, key: str) -> Any:
        return self.require(key)

    def __contains__(self, key: str) -> bool:
        return self._lookup(key) is not _MISSING

    def __repr__(self) -> str:
        return f"<StructuredResult resource={self.resource!r}>"


def parse_describe(raw: str, resource: str = "") -> StructuredResult:
    """Parse ``kubectl describe`` output into a field map.

    Only top-level (unindented) fields are kept; when several objects
    are described, the first occurrence of a key wins.
    """
    fields: dict[str, str] = {}
    for line in raw.splitlines():
        if not line or line[0].isspace():
            continue
        m = _DESCRIBE_FIELD.match(line)
        if m is None:
            continue
        key = m.group("key").strip()
        fields.setdefault(key, (m.group("value") or "").strip())

    if not fields:
        raise ParseError("no fields found in describe output", raw, resource=resource)
    return StructuredResult(fields, raw, resource)


def format_selector(labels: dict[str, Any]) -> str:
    """``{"app": "x", "release": "y"}`` → ``app=x,release=y`` (sorted by key)."""
    return ",".join(f"{k}={labels[k]}" for k in sorted(labels))


class Kubectl:
    """Thin structured wrapper over the kubectl CLI."""

    def __init__(self, executor: Adapter, namespace: str = "default", working_dir: str = "."):
        self._executor = executor
        self.namespace = namespace
        self.working_dir = working_dir

    def run(self, *args: str) -> str:
        """Run ``kubectl <args>`` and return its trimmed output.

        Raises:
            CommandError: If kubectl exits non-zero.
        """
        receipt = self._executor.run(self.working_dir, KUBECTL, *args)
        receipt.raise_for_status()
        return receipt.output.strip()

    def apply(self, manifest: str) -> str:
        """``kubectl apply -f <manifest>`` (path or URL)."""
        output = self.run("apply", "-f", manifest)
        logger.debug("Applied %s", manifest)
        return output

    def get_resources_by_selector(self, kind: str, selector: str) -> StructuredResult:
        """List ``kind`` objects matching ``selector`` as a List document.

        Zero matches is not an error here; minimum counts are the
        caller's policy.
        """
        resource = f"{kind} with selector {selector}"
        output = self.run(
            "get", kind, f"--namespace={self.namespace}", "-l", selector, "-o", "json",
        )
        result = StructuredResult.from_json(output, resource)
        result.items()  # validates shape
        return result

    def get_resource(self, kind: str, name: str) -> StructuredResult:
        """Fetch one object as JSON."""
        output = self.run("get", kind, name, f"--namespace={self.namespace}", "-o", "json")
        return StructuredResult.from_json(output, f"{kind}/{name}")

    def get_resource_selector(self, kind: str, name: str) -> str:
        """Label selector addressing the pods (and siblings) of ``kind/name``.

        Uses ``spec.selector.matchLabels`` when the object has one,
        otherwise its ``metadata.labels``.
        """
        resource = self.get_resource(kind, name)
        labels = resource.get("spec.selector.matchLabels") or resource.get("metadata.labels")
        if not labels or not isinstance(labels, dict):
            raise MissingFieldError("metadata.labels", resource.raw, resource=resource.resource)

        selector = format_selector(labels)
        logger.debug("Selector for %s/%s: %s", kind, name, selector)
        return selector

    def describe(self, kind: str, selector: str) -> StructuredResult:
        """``kubectl describe <kind> -l <selector>`` parsed into fields."""
        output = self.run("describe", kind, f"--namespace={self.namespace}", "-l", selector)
        return parse_describe(output, f"{kind} with selector {selector}")

    def jsonpath(self, kind: str, name: str, template: str) -> str:
        """Single-field lookup: ``kubectl get <kind> <name> -o jsonpath=<template>``."""
        return self.run("get", kind, name, f"--namespace={self.namespace}", "-o", f"jsonpath={template}")
