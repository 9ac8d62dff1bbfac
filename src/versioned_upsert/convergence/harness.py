"""ConvergenceHarness: run many proposals for one id at the same time."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..persistence.operation import VersionedUpsert
from ..primitives.exceptions import ConfigurationError
from ..primitives.isolation import IsolationLevel

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from ..domain.outcome import UpsertResult
    from ..domain.proposal import Proposal
    from ..persistence.operation import BeforeCommitHook
    from ..persistence.store import EntityStore

logger = logging.getLogger("versioned_upsert.harness")


@dataclass(frozen=True)
class HarnessConfig:
    """Configuration for a convergence trial.

    Attributes:
        isolation_level: Isolation level of every operation's connection.
        stagger_delay: Seconds each worker sleeps before executing, so all
            operations are scheduled before any of them writes.
        timeout: Seconds to wait for all operations to finish.
        seed: Seed for the submission-order shuffle; None for a random one.
        cancel_on_timeout: Cancel unfinished operations and close their
            connections at timeout instead of abandoning them.
    """

    isolation_level: IsolationLevel = IsolationLevel.READ_COMMITTED
    stagger_delay: float = 0.2
    timeout: float = 5.0
    seed: int | None = None
    cancel_on_timeout: bool = False

    def __post_init__(self) -> None:
        if self.stagger_delay < 0:
            raise ConfigurationError(
                f"stagger_delay must be >= 0, got {self.stagger_delay}"
            )
        if self.timeout <= 0:
            raise ConfigurationError(f"timeout must be > 0, got {self.timeout}")


@dataclass
class HarnessRun:
    """Record of one convergence trial.

    ``proposals`` is in submission (shuffled) order, ``results`` in
    completion order. Operations still running at timeout are listed in
    ``pending``, cancelled or abandoned; abandoned ones may still commit
    later.
    """

    entity_id: UUID
    isolation_level: IsolationLevel
    proposals: list[Proposal]
    results: list[UpsertResult] = field(default_factory=list)
    pending: set[asyncio.Task[UpsertResult]] = field(default_factory=set)

    @property
    def timed_out(self) -> bool:
        return bool(self.pending)

    @property
    def successful(self) -> list[UpsertResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> list[UpsertResult]:
        return [r for r in self.results if not r.success]


class ConvergenceHarness:
    """
    Drives N VersionedUpsert operations for the same id concurrently.

    Each operation gets its own connection; nothing is shared between them
    except the row itself, so every interaction goes through the store's
    locking under the configured isolation level. Individual failures are
    recorded on the run, never raised.
    """

    def __init__(
        self,
        store: EntityStore,
        config: HarnessConfig | None = None,
        *,
        before_commit: BeforeCommitHook | None = None,
    ) -> None:
        self._store = store
        self._config = config or HarnessConfig()
        self._before_commit = before_commit
        self._random = random.Random(self._config.seed)

    @property
    def config(self) -> HarnessConfig:
        return self._config

    async def run(
        self,
        entity_id: UUID,
        proposals: Iterable[tuple[str, int]],
        *,
        isolation_level: IsolationLevel | str | None = None,
    ) -> HarnessRun:
        """Execute every ``(name, version)`` proposal for ``entity_id`` at once.

        Raises:
            ConfigurationError: If no proposals are given, the store cannot
                hold one connection per proposal, or a connection or
                operation cannot be set up. No write is attempted then.
        """
        level = IsolationLevel.parse(isolation_level or self._config.isolation_level)
        operations = await self._prepare(entity_id, list(proposals), level)

        # Submission order must not follow construction order.
        self._random.shuffle(operations)
        run = HarnessRun(
            entity_id=entity_id,
            isolation_level=level,
            proposals=[op.proposal for op in operations],
        )
        logger.info(
            "Submitting %d upserts for id=%s at %s in order %s",
            len(operations),
            entity_id,
            level.value,
            [op.version for op in operations],
        )

        tasks = {
            asyncio.create_task(
                self._work(op, run), name=f"upsert-{entity_id}-v{op.version}"
            )
            for op in operations
        }
        done, pending = await asyncio.wait(tasks, timeout=self._config.timeout)
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                logger.error(
                    "Upsert task %s crashed",
                    task.get_name(),
                    exc_info=task.exception(),
                )

        if pending:
            await self._handle_timeout(run, pending)
        logger.info(
            "Finished %d/%d upserts for id=%s (%d failed)",
            len(run.results),
            len(operations),
            entity_id,
            len(run.failed),
        )
        return run

    async def _prepare(
        self,
        entity_id: UUID,
        proposals: list[tuple[str, int]],
        level: IsolationLevel,
    ) -> list[VersionedUpsert]:
        if not proposals:
            raise ConfigurationError("At least one proposal is required")
        capacity = self._store.max_connections
        if capacity is not None and len(proposals) > capacity:
            raise ConfigurationError(
                f"{len(proposals)} proposals need as many connections at once, "
                f"but the store pool holds {capacity}; raise "
                "StoreConfig.pool_size or leave it unset"
            )
        operations: list[VersionedUpsert] = []
        try:
            for name, version in proposals:
                connection = await self._store.connect(level)
                try:
                    operation = VersionedUpsert.prepare(
                        connection,
                        entity_id,
                        name,
                        version,
                        before_commit=self._before_commit,
                    )
                except ConfigurationError:
                    await connection.close()
                    raise
                operations.append(operation)
        except ConfigurationError:
            for operation in operations:
                await operation.close_connection()
            raise
        return operations

    async def _work(self, operation: VersionedUpsert, run: HarnessRun) -> UpsertResult:
        try:
            # Let the whole batch get scheduled before any write starts.
            await asyncio.sleep(self._config.stagger_delay)
            result = await operation.execute()
            if not result.success:
                logger.warning("Upsert failed for version %s", operation.version)
            run.results.append(result)
            return result
        finally:
            await operation.close_connection()

    async def _handle_timeout(
        self, run: HarnessRun, pending: set[asyncio.Task[UpsertResult]]
    ) -> None:
        run.pending = pending
        if not self._config.cancel_on_timeout:
            logger.warning(
                "%d upsert(s) for id=%s still running after %.1fs; abandoning "
                "them with their connections open",
                len(pending),
                run.entity_id,
                self._config.timeout,
            )
            return

        logger.warning(
            "Cancelling %d upsert(s) for id=%s after %.1fs",
            len(pending),
            run.entity_id,
            self._config.timeout,
        )
        for task in pending:
            task.cancel()
        # Workers close their connections while unwinding.
        await asyncio.gather(*pending, return_exceptions=True)
