"""SQLAlchemy persistence: entity store, statements and the upsert operation."""

from __future__ import annotations

from .config import StoreConfig
from .models import Base, EventModel, event_table
from .operation import VersionedUpsert
from .statements import SUPPORTED_DIALECTS, build_conditional_upsert
from .store import EntityStore, StoreInfo, setup_sqlite_locking

__all__ = [
    "Base",
    "EntityStore",
    "EventModel",
    "SUPPORTED_DIALECTS",
    "StoreConfig",
    "StoreInfo",
    "VersionedUpsert",
    "build_conditional_upsert",
    "event_table",
    "setup_sqlite_locking",
]
