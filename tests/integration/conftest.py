"""Integration test configuration with MariaDB and PostgreSQL containers."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy.engine import make_url

from versioned_upsert import EntityStore, StoreConfig

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Generator


def _start(container):
    try:
        container.start()
    except Exception as e:  # noqa: BLE001
        pytest.skip(f"Docker is not available: {e}")
    return container


def _async_url(container, drivername: str) -> str:
    url = make_url(container.get_connection_url()).set(drivername=drivername)
    return url.render_as_string(hide_password=False)


@pytest.fixture(scope="module")
def mariadb_url() -> Generator[str, None, None]:
    """Start a MariaDB container and return its aiomysql URL."""
    pytest.importorskip("testcontainers")
    pytest.importorskip("aiomysql")

    from testcontainers.mysql import MySqlContainer

    container = _start(MySqlContainer("mariadb:11"))
    try:
        yield _async_url(container, "mysql+aiomysql")
    finally:
        container.stop()


@pytest.fixture(scope="module")
def postgres_url() -> Generator[str, None, None]:
    """Start a PostgreSQL container and return its asyncpg URL."""
    pytest.importorskip("testcontainers")
    pytest.importorskip("asyncpg")

    from testcontainers.postgres import PostgresContainer

    container = _start(PostgresContainer("postgres:16-alpine"))
    try:
        yield _async_url(container, "postgresql+asyncpg")
    finally:
        container.stop()


@pytest.fixture(params=["mariadb", "postgres"])
def store_url(request: pytest.FixtureRequest) -> str:
    return request.getfixturevalue(f"{request.param}_url")


@pytest.fixture
async def backend_store(store_url: str) -> AsyncIterator[EntityStore]:
    entity_store = EntityStore.from_config(StoreConfig(url=store_url))
    await entity_store.create_schema()
    yield entity_store
    await entity_store.dispose()
