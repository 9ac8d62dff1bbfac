"""Primitives shared by every layer: exceptions and isolation levels."""

from __future__ import annotations

from .exceptions import (
    ConfigurationError,
    ConvergenceError,
    OperationAlreadyExecutedError,
    PersistenceError,
    ResourceReleaseFailure,
    RollbackFailure,
    VersionedUpsertError,
    WriteFailure,
)
from .isolation import IsolationLevel

__all__ = [
    "ConfigurationError",
    "ConvergenceError",
    "IsolationLevel",
    "OperationAlreadyExecutedError",
    "PersistenceError",
    "ResourceReleaseFailure",
    "RollbackFailure",
    "VersionedUpsertError",
    "WriteFailure",
]
