"""Exceptions for versioned-upsert."""

from __future__ import annotations


class VersionedUpsertError(Exception):
    """Root exception for the entire versioned-upsert package."""


class ConfigurationError(VersionedUpsertError):
    """Raised when an operation cannot be set up.

    Usage: statement building, parameter validation or connection setup
    failed. The write is never attempted.
    """


class PersistenceError(VersionedUpsertError):
    """Base class for all store-level failures."""


class WriteFailure(PersistenceError):
    """The conditional write or its commit failed.

    Never raised out of an operation; carried on the ``UpsertResult``.
    """


class RollbackFailure(PersistenceError):
    """Rollback after a failed write itself failed. Logged only."""


class ResourceReleaseFailure(PersistenceError):
    """Closing a statement or connection failed. Logged only."""


class OperationAlreadyExecutedError(VersionedUpsertError):
    """Raised when a single-shot operation is executed a second time."""


class ConvergenceError(VersionedUpsertError):
    """Raised when the persisted row does not match the expected winner."""

    def __init__(self, entity_id: object, reason: str) -> None:
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"Event id={entity_id!s} did not converge: {reason}")


__all__: list[str] = [
    "ConfigurationError",
    "ConvergenceError",
    "OperationAlreadyExecutedError",
    "PersistenceError",
    "ResourceReleaseFailure",
    "RollbackFailure",
    "VersionedUpsertError",
    "WriteFailure",
]
