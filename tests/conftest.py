"""Shared fixtures: a file-backed SQLite entity store per test."""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

import pytest
from sqlalchemy import event

from versioned_upsert import EntityStore, StoreConfig

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path


async def _make_store(path: Path, **config) -> EntityStore:
    # A file database so every connection is a real, separate connection.
    entity_store = EntityStore.from_config(
        StoreConfig(url=f"sqlite+aiosqlite:///{path}", **config)
    )
    await entity_store.create_schema()
    return entity_store


@pytest.fixture()
async def store(tmp_path: Path) -> AsyncIterator[EntityStore]:
    entity_store = await _make_store(tmp_path / "events.db")
    yield entity_store
    await entity_store.dispose()


@pytest.fixture()
async def pooled_store(tmp_path: Path) -> AsyncIterator[EntityStore]:
    entity_store = await _make_store(tmp_path / "pooled.db", pool_size=3)
    yield entity_store
    await entity_store.dispose()


@pytest.fixture()
def open_connections(store: EntityStore) -> Counter[str]:
    """Count connections handed out by ``store`` and not yet released."""
    counter: Counter[str] = Counter()
    engine = store.engine.sync_engine

    @event.listens_for(engine, "checkout")
    def _checkout(*args: object) -> None:
        counter["open"] += 1

    @event.listens_for(engine, "checkin")
    def _checkin(*args: object) -> None:
        counter["open"] -= 1

    return counter


@pytest.fixture()
def event_id() -> UUID:
    return uuid4()
