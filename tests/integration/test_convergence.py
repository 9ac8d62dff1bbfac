"""Convergence against real MariaDB and PostgreSQL servers."""

from __future__ import annotations

from uuid import uuid4

import pytest

from versioned_upsert import (
    ConvergenceHarness,
    ConvergenceVerifier,
    HarnessConfig,
    IsolationLevel,
    VersionedUpsert,
    WriteOutcome,
)

pytestmark = pytest.mark.integration

PROPOSALS = [(f"Event v{v}", v) for v in range(1, 6)]


async def _upsert(store, entity_id, name, version, **kwargs):
    connection = await store.connect(IsolationLevel.READ_COMMITTED)
    operation = VersionedUpsert.prepare(connection, entity_id, name, version, **kwargs)
    try:
        return await operation.execute()
    finally:
        await operation.close_connection()


@pytest.mark.asyncio()
async def test_store_metadata(backend_store):
    info = await backend_store.describe()

    assert info.dialect in {"mysql", "mariadb", "postgresql"}
    assert info.server_version
    assert info.default_isolation_level in {"READ COMMITTED", "REPEATABLE READ"}


@pytest.mark.asyncio()
@pytest.mark.parametrize("seed", [0, 1, 2])
async def test_concurrent_proposals_converge(backend_store, seed):
    entity_id = uuid4()
    harness = ConvergenceHarness(backend_store, HarnessConfig(seed=seed))

    run = await harness.run(entity_id, PROPOSALS)

    assert not run.timed_out
    assert len(run.results) == 5
    # The store may still abort a writer on deadlock; the row must then
    # hold the highest committed version.
    record = await ConvergenceVerifier(backend_store).verify_run(
        run, successful_only=True
    )
    if not run.failed:
        assert record.version == 5


@pytest.mark.asyncio()
@pytest.mark.parametrize("level", list(IsolationLevel))
async def test_every_isolation_level_converges_on_committed_maximum(
    backend_store, level
):
    entity_id = uuid4()
    harness = ConvergenceHarness(backend_store, HarnessConfig(seed=11))

    run = await harness.run(entity_id, PROPOSALS, isolation_level=level)

    assert run.isolation_level is level
    assert run.successful
    await ConvergenceVerifier(backend_store).verify_run(run, successful_only=True)


@pytest.mark.asyncio()
async def test_sequential_writes_classify_outcomes(backend_store):
    entity_id = uuid4()

    created = await _upsert(backend_store, entity_id, "Another event", 5)
    stale = await _upsert(backend_store, entity_id, "Stale event", 4)
    equal = await _upsert(backend_store, entity_id, "Same version", 5)
    newer = await _upsert(backend_store, entity_id, "Newer event", 6)

    assert created.outcome is WriteOutcome.APPLIED
    assert stale.outcome is WriteOutcome.NO_OP
    assert equal.outcome is WriteOutcome.NO_OP
    assert newer.outcome is WriteOutcome.APPLIED
    record = await ConvergenceVerifier(backend_store).verify(
        entity_id, "Newer event", 6
    )
    assert record.version == 6


@pytest.mark.asyncio()
async def test_failed_write_leaves_prior_state(backend_store):
    entity_id = uuid4()
    await _upsert(backend_store, entity_id, "First event", 5)

    async def fail(connection, proposal):
        raise RuntimeError("injected before commit")

    result = await _upsert(
        backend_store, entity_id, "Newer event", 7, before_commit=fail
    )

    assert result.outcome is WriteOutcome.FAILED
    await ConvergenceVerifier(backend_store).verify(entity_id, "First event", 5)
