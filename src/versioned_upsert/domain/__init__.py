"""Domain value objects and outcome classification."""

from __future__ import annotations

from .outcome import UpsertResult, WriteOutcome, classify_rows_affected
from .proposal import EventRecord, Proposal

__all__ = [
    "EventRecord",
    "Proposal",
    "UpsertResult",
    "WriteOutcome",
    "classify_rows_affected",
]
