"""Versioned upsert: last-writer-wins by version over a relational store."""

from __future__ import annotations

from .convergence import (
    ConvergenceHarness,
    ConvergenceVerifier,
    HarnessConfig,
    HarnessRun,
)
from .domain import (
    EventRecord,
    Proposal,
    UpsertResult,
    WriteOutcome,
    classify_rows_affected,
)
from .persistence import (
    EntityStore,
    EventModel,
    StoreConfig,
    StoreInfo,
    VersionedUpsert,
    build_conditional_upsert,
)
from .primitives import (
    ConfigurationError,
    ConvergenceError,
    IsolationLevel,
    OperationAlreadyExecutedError,
    PersistenceError,
    ResourceReleaseFailure,
    RollbackFailure,
    VersionedUpsertError,
    WriteFailure,
)

__all__ = [
    # Domain
    "EventRecord",
    "Proposal",
    "UpsertResult",
    "WriteOutcome",
    "classify_rows_affected",
    # Persistence
    "EntityStore",
    "EventModel",
    "StoreConfig",
    "StoreInfo",
    "VersionedUpsert",
    "build_conditional_upsert",
    # Convergence
    "ConvergenceHarness",
    "ConvergenceVerifier",
    "HarnessConfig",
    "HarnessRun",
    # Primitives
    "IsolationLevel",
    # Exceptions
    "ConfigurationError",
    "ConvergenceError",
    "OperationAlreadyExecutedError",
    "PersistenceError",
    "ResourceReleaseFailure",
    "RollbackFailure",
    "VersionedUpsertError",
    "WriteFailure",
]
