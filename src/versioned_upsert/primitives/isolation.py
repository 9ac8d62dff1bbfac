"""Transaction isolation levels understood by the entity store."""

from __future__ import annotations

import enum

from .exceptions import ConfigurationError


class IsolationLevel(str, enum.Enum):
    """Isolation levels a connection may be opened with.

    Values are the strings SQLAlchemy accepts for the ``isolation_level``
    execution option, so a member can be passed straight through.
    """

    READ_UNCOMMITTED = "READ UNCOMMITTED"
    READ_COMMITTED = "READ COMMITTED"
    REPEATABLE_READ = "REPEATABLE READ"
    SERIALIZABLE = "SERIALIZABLE"

    @classmethod
    def parse(cls, value: IsolationLevel | str) -> IsolationLevel:
        """Return the member for ``value``.

        Raises:
            ConfigurationError: If ``value`` names no isolation level.
        """
        try:
            return cls(value)
        except ValueError as e:
            valid = ", ".join(level.value for level in cls)
            raise ConfigurationError(
                f"Unknown isolation level {value!r}; expected one of: {valid}"
            ) from e
