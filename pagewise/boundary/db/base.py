"""
Declarative base, shared column mixins and UTC helpers.

All PageWise tables register on ``Base.metadata``; ``init_db`` creates them
from there. Timestamps are stored timezone-aware and read back through
``as_utc`` because SQLite drops the offset.

Dependencies: sqlalchemy
System role: Foundation for all database models
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, MetaData
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Deterministic constraint names so SQLite and PostgreSQL schemas match
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Return ``value`` as aware UTC; naive values are taken to be UTC already."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Base(DeclarativeBase):
    """Registry for every PageWise table."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class IdMixin:
    """
    Autoincrement integer primary key.

    The same id is used as the FAISS vector id and the FTS rowid of a chunk,
    and orders messages chronologically within a conversation.
    """

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)


class TimestampMixin:
    """
    created_at / updated_at columns, both aware UTC.

    Attributes:
        created_at: Set on insert
        updated_at: Set on insert and on every ORM or Core update
    """

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )
