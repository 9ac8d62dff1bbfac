"""Connection configuration for the entity store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.pool import NullPool

from ..primitives.exceptions import ConfigurationError

if TYPE_CHECKING:
    from sqlalchemy.engine import URL

_MYSQL_BACKENDS = frozenset({"mysql", "mariadb"})


@dataclass(frozen=True)
class StoreConfig:
    """Configuration for reaching the entity store.

    Attributes:
        url: SQLAlchemy async URL of the endpoint, e.g.
            ``"mysql+aiomysql://db-host:3306/sampleDB"``.
        username: Overrides the user in ``url`` when given.
        password: Overrides the password in ``url`` when given.
        echo: Log every emitted SQL statement.
        pool_size: Connection pool size, with no overflow. Concurrent trials
            need one connection per proposal. ``None`` disables pooling so
            every connection is opened on demand and closed when released.
        found_rows: MySQL/MariaDB only. When True (the SQLAlchemy default) an
            upsert that matched a row but changed nothing reports 1 affected
            row, which would classify a stale proposal as applied. When False
            the server reports the rows actually changed, so it reports 0.
    """

    url: str
    username: str | None = None
    password: str | None = None
    echo: bool = False
    pool_size: int | None = None
    found_rows: bool = False

    def sqlalchemy_url(self) -> URL:
        """Combine the endpoint and the credentials into one URL."""
        try:
            url = make_url(self.url)
        except ArgumentError as e:
            raise ConfigurationError(f"Invalid store URL: {e}") from e
        if self.username is not None:
            url = url.set(username=self.username)
        if self.password is not None:
            url = url.set(password=self.password)
        return url

    def engine_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``create_async_engine``."""
        kwargs: dict[str, Any] = {"echo": self.echo}
        if self.pool_size is None:
            kwargs["poolclass"] = NullPool
        else:
            kwargs["pool_size"] = self.pool_size
            kwargs["max_overflow"] = 0
        backend = self.sqlalchemy_url().get_backend_name()
        if not self.found_rows and backend in _MYSQL_BACKENDS:
            # Replaces the CLIENT_FOUND_ROWS flag SQLAlchemy sets by default.
            kwargs["connect_args"] = {"client_flag": 0}
        return kwargs
