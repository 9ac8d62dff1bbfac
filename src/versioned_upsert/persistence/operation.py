"""
VersionedUpsert: a single conditional write of one proposal on its own connection.

Lifecycle::

    op = VersionedUpsert.prepare(connection, entity_id, "First event", 5)
    result = await op.execute()      # exactly once
    await op.close_connection()      # caller-owned

``execute()`` never raises for store failures: the write, the commit and the
rollback are all converted into the returned :class:`UpsertResult`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from ..domain.outcome import UpsertResult, WriteOutcome, classify_rows_affected
from ..domain.proposal import Proposal
from ..primitives.exceptions import (
    ConfigurationError,
    OperationAlreadyExecutedError,
    ResourceReleaseFailure,
    RollbackFailure,
    WriteFailure,
)
from .statements import build_conditional_upsert

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from uuid import UUID

    from sqlalchemy.engine import CursorResult
    from sqlalchemy.ext.asyncio import AsyncConnection
    from sqlalchemy.sql.dml import Insert

    BeforeCommitHook = Callable[[AsyncConnection, Proposal], Awaitable[None]]

logger = logging.getLogger("versioned_upsert.operation")


class VersionedUpsert:
    """
    Self-contained worker that upserts one version of one event.

    The connection must already have auto-commit disabled and its isolation
    level chosen by the caller. The operation is single-shot: a second
    ``execute()`` raises :class:`OperationAlreadyExecutedError` and never
    re-runs the write.

    ``before_commit`` is an opt-in fault-injection hook awaited between the
    write and the commit. It may raise, or close the connection, to simulate
    a failure mid-transaction.
    """

    def __init__(
        self,
        connection: AsyncConnection,
        proposal: Proposal,
        *,
        before_commit: BeforeCommitHook | None = None,
    ) -> None:
        self._connection = connection
        self._proposal = proposal
        self._before_commit = before_commit
        self._result: UpsertResult | None = None
        self._executed = False
        self._statement = self._prepare_statement()

    @classmethod
    def prepare(
        cls,
        connection: AsyncConnection,
        entity_id: UUID,
        name: str,
        version: int,
        *,
        before_commit: BeforeCommitHook | None = None,
    ) -> VersionedUpsert:
        """Bind ``(entity_id, name, version)`` to a new operation.

        Raises:
            ConfigurationError: If the parameters fail validation or the
                statement cannot be prepared for this connection.
        """
        try:
            proposal = Proposal(id=entity_id, name=name, version=version)
        except ValidationError as e:
            raise ConfigurationError(
                f"Failed to bind parameters for version {version!r}: {e}"
            ) from e
        return cls(connection, proposal, before_commit=before_commit)

    def _prepare_statement(self) -> Insert:
        connection = self._connection
        sync_connection = connection.sync_connection
        if sync_connection is None or sync_connection.closed:
            raise ConfigurationError("Cannot prepare upsert on a closed connection")
        isolation = sync_connection.get_execution_options().get("isolation_level")
        if isolation == "AUTOCOMMIT":
            raise ConfigurationError(
                "Connection is in autocommit mode; the upsert must run in a "
                "transaction it commits itself"
            )
        statement = build_conditional_upsert(connection.dialect.name, self._proposal)
        try:
            statement.compile(dialect=connection.dialect)
        except SQLAlchemyError as e:
            raise ConfigurationError(f"Failed to prepare statement: {e}") from e
        return statement

    @property
    def proposal(self) -> Proposal:
        return self._proposal

    @property
    def version(self) -> int:
        return self._proposal.version

    @property
    def executed(self) -> bool:
        return self._executed

    @property
    def result(self) -> UpsertResult | None:
        """The terminal result, or None until ``execute()`` has returned."""
        return self._result

    async def execute(self) -> UpsertResult:
        """Issue the conditional write and commit it.

        Returns:
            The terminal outcome. ``success`` is True iff the commit completed.

        Raises:
            OperationAlreadyExecutedError: If called more than once.
        """
        if self._executed:
            raise OperationAlreadyExecutedError(
                f"Upsert of version {self.version} for id={self._proposal.id} "
                "has already been executed"
            )
        self._executed = True

        proposal = self._proposal
        rows_affected: int | None = None
        cursor: CursorResult | None = None
        try:
            cursor = await self._connection.execute(self._statement)
            rows_affected = cursor.rowcount
            logger.debug(
                "rows changed: %s for version: %s", rows_affected, proposal.version
            )
            if self._before_commit is not None:
                await self._before_commit(self._connection, proposal)
            if not self._connection.in_transaction():
                raise WriteFailure("transaction ended before commit")
            await self._connection.commit()
            result = UpsertResult(
                proposal=proposal,
                outcome=classify_rows_affected(rows_affected),
                rows_affected=rows_affected,
            )
        except Exception as e:  # noqa: BLE001
            # Catch all write/commit errors (constraint, network, hook)
            failure = e if isinstance(e, WriteFailure) else WriteFailure(str(e))
            if failure is not e:
                failure.__cause__ = e
            await self._rollback()
            result = UpsertResult(
                proposal=proposal,
                outcome=WriteOutcome.FAILED,
                rows_affected=rows_affected,
                error=failure,
            )
        finally:
            if cursor is not None:
                self._release(cursor)

        self._result = result
        if result.success:
            logger.info("%s (id=%s)", result.describe(), proposal.id)
        else:
            logger.warning("%s (id=%s)", result.describe(), proposal.id)
        return result

    async def _rollback(self) -> None:
        try:
            await self._connection.rollback()
        except Exception as e:  # noqa: BLE001
            # Already failed; a rollback error only gets logged
            failure = RollbackFailure(
                f"Failure during rollback of version {self.version}: {e}"
            )
            logger.error("%s", failure, exc_info=e)

    def _release(self, cursor: CursorResult) -> None:
        try:
            cursor.close()
        except Exception as e:  # noqa: BLE001
            failure = ResourceReleaseFailure(
                f"Exception while closing statement for version {self.version}: {e}"
            )
            logger.warning("%s", failure)

    async def close_connection(self) -> None:
        """Close the owned connection. Failures are logged, never raised."""
        try:
            await self._connection.close()
        except Exception as e:  # noqa: BLE001
            failure = ResourceReleaseFailure(
                f"Exception when closing connection for version {self.version}: {e}"
            )
            logger.warning("%s", failure)
