"""
Domain models — Pydantic types for chartverify.

All models are re-exported here for convenient access:

    from chartverify.core.models import Command, Receipt, TestContext, Outcome
"""

from chartverify.core.models.command import Command, Receipt
from chartverify.core.models.context import (
    ClusterHandle,
    ClusterState,
    ResourceDescriptor,
    TestContext,
)
from chartverify.core.models.outcome import Outcome

__all__ = [
    "ClusterHandle",
    "ClusterState",
    # command.py
    "Command",
    "Outcome",
    "Receipt",
    # context.py
    "ResourceDescriptor",
    "TestContext",
]
