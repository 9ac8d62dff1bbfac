"""SQLAlchemy model for the event table."""

import uuid

from sqlalchemy import BigInteger, Integer, String, Uuid, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base for all SQLAlchemy models in this package."""


class EventModel(Base):
    """
    One row per event id, holding the highest version written so far.
    Rows are only ever written through the conditional upsert.
    """

    __tablename__ = "event"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    version: Mapped[int] = mapped_column(
        Integer().with_variant(BigInteger, "postgresql", "mysql", "mariadb"),
        nullable=False,
        default=0,
        server_default=text("0"),
    )


event_table = EventModel.__table__
