"""Dialect-specific conditional upsert statements.

Each builder returns ONE ``INSERT`` that inserts the event when absent and,
when present, overwrites ``name`` and ``version`` only if the proposed version
is strictly greater than the stored one. The comparison runs inside the store
as part of the statement, so there is no read-then-write window.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import case
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from ..primitives.exceptions import ConfigurationError
from .models import event_table

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy import Table
    from sqlalchemy.sql.dml import Insert

    from ..domain.proposal import Proposal

_MYSQL_DIALECTS = frozenset({"mysql", "mariadb"})

_ON_CONFLICT_INSERTS: dict[str, Callable[[Table], Any]] = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}

SUPPORTED_DIALECTS = frozenset(_MYSQL_DIALECTS | _ON_CONFLICT_INSERTS.keys())


def build_conditional_upsert(
    dialect_name: str,
    proposal: Proposal,
    table: Table = event_table,
) -> Insert:
    """Build the conditional upsert of ``proposal`` for ``dialect_name``.

    Raises:
        ConfigurationError: If the dialect has no conditional upsert.
    """
    values = {
        "id": proposal.id,
        "name": proposal.name,
        "version": proposal.version,
    }
    if dialect_name in _MYSQL_DIALECTS:
        return _on_duplicate_key_upsert(table, values)
    insert_factory = _ON_CONFLICT_INSERTS.get(dialect_name)
    if insert_factory is None:
        raise ConfigurationError(
            f"No conditional upsert available for dialect {dialect_name!r}; "
            f"supported: {', '.join(sorted(SUPPORTED_DIALECTS))}"
        )
    return _on_conflict_upsert(insert_factory, table, values)


def _on_duplicate_key_upsert(table: Table, values: dict[str, Any]) -> Insert:
    # ON DUPLICATE KEY UPDATE takes no WHERE clause, so every assignment
    # carries the guard.
    stmt = mysql_insert(table).values(**values)
    newer = table.c.version < stmt.inserted.version
    # Assignments apply left to right: name must be set while version still
    # holds the stored value.
    return stmt.on_duplicate_key_update(
        [
            ("name", case((newer, stmt.inserted.name), else_=table.c.name)),
            (
                "version",
                case((newer, stmt.inserted.version), else_=table.c.version),
            ),
        ]
    )


def _on_conflict_upsert(
    insert_factory: Callable[[Table], Any],
    table: Table,
    values: dict[str, Any],
) -> Insert:
    stmt = insert_factory(table).values(**values)
    excluded = stmt.excluded
    upsert: Insert = stmt.on_conflict_do_update(
        index_elements=[table.c.id],
        set_={"name": excluded.name, "version": excluded.version},
        where=table.c.version < excluded.version,
    )
    return upsert
