"""ConvergenceVerifier: check the persisted row against the expected winner."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..primitives.exceptions import ConvergenceError

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from ..domain.proposal import EventRecord, Proposal
    from ..persistence.store import EntityStore
    from .harness import HarnessRun

logger = logging.getLogger("versioned_upsert.verifier")


class ConvergenceVerifier:
    """Reads back the row for an id and asserts it holds the maximum version."""

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    @staticmethod
    def expected_winner(proposals: Iterable[Proposal]) -> Proposal:
        """Return the proposal with the highest version.

        Raises:
            ValueError: If there are no proposals or two share a version.
        """
        candidates = list(proposals)
        if not candidates:
            raise ValueError("No proposals to choose a winner from")
        versions = [p.version for p in candidates]
        if len(set(versions)) != len(versions):
            raise ValueError(f"Proposal versions must be distinct, got {versions}")
        return max(candidates, key=lambda p: p.version)

    async def verify(
        self, entity_id: UUID, expected_name: str, expected_version: int
    ) -> EventRecord:
        """Assert exactly one row exists for the id with the expected values.

        Raises:
            ConvergenceError: If the row is missing, duplicated or differs.
        """
        records = await self._store.fetch(entity_id)
        if not records:
            raise ConvergenceError(entity_id, "no row stored")
        if len(records) > 1:
            raise ConvergenceError(
                entity_id, f"{len(records)} rows stored, expected exactly one"
            )
        record = records[0]
        if record.version != expected_version:
            raise ConvergenceError(
                entity_id,
                f"stored version {record.version}, expected {expected_version}",
            )
        if record.name != expected_name:
            raise ConvergenceError(
                entity_id, f"stored name {record.name!r}, expected {expected_name!r}"
            )
        logger.info("Event id=%s converged on version %s", entity_id, record.version)
        return record

    async def verify_run(
        self, run: HarnessRun, *, successful_only: bool = False
    ) -> EventRecord:
        """Verify the outcome of a harness run.

        By default the expected winner is the highest version submitted. With
        ``successful_only`` it is the highest version whose operation reported
        a commit, for isolation levels under which the store may abort writers.
        """
        if successful_only:
            proposals = [r.proposal for r in run.successful]
            if not proposals:
                raise ConvergenceError(run.entity_id, "no proposal was committed")
        else:
            proposals = run.proposals
        winner = self.expected_winner(proposals)
        return await self.verify(run.entity_id, winner.name, winner.version)
