"""EntityStore: async SQLAlchemy adapter over the event table."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy import event, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine

from ..domain.proposal import EventRecord
from ..primitives.exceptions import ConfigurationError
from ..primitives.isolation import IsolationLevel
from .models import Base, event_table

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy.engine import Connection, Engine
    from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

    from .config import StoreConfig

logger = logging.getLogger("versioned_upsert.store")


@dataclass(frozen=True, slots=True)
class StoreInfo:
    """Capabilities reported by a provisioned store."""

    dialect: str
    driver: str
    server_version: tuple[Any, ...] | None
    default_isolation_level: str | None
    isolation_levels: tuple[str, ...]


def setup_sqlite_locking(engine: AsyncEngine | Engine) -> None:
    """Make SQLite transactions take the write lock when they begin.

    With the driver's deferred ``BEGIN`` a writer that already holds a
    shared lock gets ``database is locked`` instead of waiting for a
    concurrent writer, so upserts would fail under contention rather than
    serialize. ``BEGIN IMMEDIATE`` waits on the busy timeout instead.

    Uses engine.sync_engine so this works with aiosqlite async engines.
    """
    listen_engine = getattr(engine, "sync_engine", engine)

    @event.listens_for(listen_engine, "connect")
    def _disable_driver_begin(dbapi_conn: Any, _connection_record: Any) -> None:
        dbapi_conn.isolation_level = None

    @event.listens_for(listen_engine, "begin")
    def _begin_immediate(conn: Connection) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class EntityStore:
    """
    Entity store capability consumed by the upsert operations.

    Provides connections with an explicit isolation level, retrieval by
    primary key and schema bootstrap. Conditional writes are issued by
    :class:`~versioned_upsert.persistence.operation.VersionedUpsert` on the
    connections handed out here.
    """

    def __init__(
        self, engine: AsyncEngine, *, max_connections: int | None = None
    ) -> None:
        self._engine = engine
        self._max_connections = max_connections

    @classmethod
    def from_config(cls, config: StoreConfig) -> EntityStore:
        """Create the engine described by ``config``."""
        url = config.sqlalchemy_url()
        try:
            engine = create_async_engine(url, **config.engine_kwargs())
        except (SQLAlchemyError, ImportError, TypeError) as e:
            raise ConfigurationError(
                f"Failed to create engine for {url.render_as_string()}: {e}"
            ) from e
        if url.get_backend_name() == "sqlite":
            setup_sqlite_locking(engine)
        logger.debug("Created engine for %s", url.render_as_string())
        return cls(engine, max_connections=config.pool_size)

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @property
    def max_connections(self) -> int | None:
        """Connections that can be open at once, or None when unbounded."""
        return self._max_connections

    @property
    def dialect_name(self) -> str:
        return self._engine.dialect.name

    async def connect(
        self,
        isolation_level: IsolationLevel | str = IsolationLevel.READ_COMMITTED,
    ) -> AsyncConnection:
        """Open a dedicated connection with the given isolation level.

        The connection is not in autocommit mode; the caller owns it and
        must close it.

        Raises:
            ConfigurationError: If the isolation level is unknown or rejected
                by the store, or no connection can be acquired.
        """
        level = IsolationLevel.parse(isolation_level)
        try:
            connection = await self._engine.connect()
        except (SQLAlchemyError, OSError) as e:
            raise ConfigurationError(f"Failed to acquire connection: {e}") from e
        try:
            await connection.execution_options(isolation_level=level.value)
        except SQLAlchemyError as e:
            await connection.close()
            raise ConfigurationError(
                f"Store {self.dialect_name!r} rejected isolation level "
                f"{level.value}: {e}"
            ) from e
        return connection

    async def fetch(self, entity_id: UUID) -> list[EventRecord]:
        """Return every row stored for ``entity_id`` (at most one)."""
        columns = (event_table.c.id, event_table.c.name, event_table.c.version)
        stmt = select(*columns).where(event_table.c.id == entity_id)
        async with self._engine.connect() as connection:
            result = await connection.execute(stmt)
            return [EventRecord.model_validate(dict(row)) for row in result.mappings()]

    async def describe(self) -> StoreInfo:
        """Report dialect, server version and isolation support."""
        async with self._engine.connect() as connection:
            info = await connection.run_sync(_inspect_connection)
        logger.info(
            "Store %s+%s server=%s default isolation=%s",
            info.dialect,
            info.driver,
            info.server_version,
            info.default_isolation_level,
        )
        return info

    async def create_schema(self) -> None:
        async with self._engine.begin() as connection:
            await connection.run_sync(Base.metadata.create_all)

    async def drop_schema(self) -> None:
        async with self._engine.begin() as connection:
            await connection.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self._engine.dispose()


def _inspect_connection(connection: Connection) -> StoreInfo:
    dialect = connection.dialect
    try:
        levels = tuple(
            dialect.get_isolation_level_values(
                connection.connection.dbapi_connection
            )
        )
    except NotImplementedError:
        levels = ()
    return StoreInfo(
        dialect=dialect.name,
        driver=dialect.driver,
        server_version=dialect.server_version_info,
        default_isolation_level=connection.get_isolation_level(),
        isolation_levels=levels,
    )
