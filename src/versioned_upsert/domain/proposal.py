"""Proposal and EventRecord value objects."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr


class Proposal(BaseModel):
    """A version of an event that one writer wishes to persist.

    Owned by exactly one operation. Types are strict so a version of ``"5"``
    or ``True`` is rejected instead of being coerced.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID
    name: StrictStr = Field(min_length=1, max_length=255)
    version: StrictInt


class EventRecord(BaseModel):
    """A persisted event row as read back from the store."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: UUID
    name: str
    version: int
