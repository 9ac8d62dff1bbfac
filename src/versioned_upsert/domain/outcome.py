"""Classification of conditional-write outcomes.

Stores disagree on what they report as "rows affected" for an upsert:

- MySQL/MariaDB report 1 for an insert, 2 for an update that changed the row
  and 0 for an update that changed nothing. With the ``CLIENT_FOUND_ROWS``
  flag (the SQLAlchemy default, turned off by ``StoreConfig.found_rows``) an
  unchanged row is reported as 1.
- PostgreSQL and SQLite report 1 whenever a row was inserted or updated and 0
  when the ``ON CONFLICT ... WHERE`` guard rejected the update.

Only zero versus nonzero is used. Whether the write was an insert or an update
cannot be recovered from the count and is never reported.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..primitives.exceptions import WriteFailure
    from .proposal import Proposal


class WriteOutcome(str, enum.Enum):
    """Semantic outcome of one proposal."""

    APPLIED = "APPLIED"
    NO_OP = "NO_OP"
    FAILED = "FAILED"


def classify_rows_affected(rows_affected: int) -> WriteOutcome:
    """Map a store-reported affected-row count to APPLIED or NO_OP.

    Any nonzero count is APPLIED, including the -1 some drivers report when
    the count is unknown.
    """
    if rows_affected == 0:
        return WriteOutcome.NO_OP
    return WriteOutcome.APPLIED


@dataclass(frozen=True, slots=True)
class UpsertResult:
    """Terminal outcome of a single VersionedUpsert execution.

    Attributes:
        proposal: The proposal that was written.
        outcome: APPLIED or NO_OP when committed, FAILED otherwise.
        rows_affected: Raw count reported by the store, if the write ran.
            Diagnostic only.
        error: The failure that prevented the commit, if any.
    """

    proposal: Proposal
    outcome: WriteOutcome
    rows_affected: int | None = None
    error: WriteFailure | None = None

    @property
    def success(self) -> bool:
        """True iff the write was committed."""
        return self.outcome is not WriteOutcome.FAILED

    @property
    def version(self) -> int:
        return self.proposal.version

    def describe(self) -> str:
        """Human-readable classification, for logs and diagnostics."""
        version = self.proposal.version
        if self.outcome is WriteOutcome.APPLIED:
            return f"Version {version} inserted / updated"
        if self.outcome is WriteOutcome.NO_OP:
            return f"No row changed, presume stored version was already >= {version}"
        if self.rows_affected:
            return (
                f"Version {version} inserted / updated, "
                f"but not committed: {self.error}"
            )
        return f"Version {version} failed: {self.error}"
