"""Database models."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.orm import DeclarativeBase


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class StoredRecord(Base):
    """One keyed record of persisted client state.

    Values are JSON documents; the store decides what they mean.
    """

    __tablename__ = "kv_records"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def __repr__(self) -> str:
        return f"<StoredRecord(key='{self.key}', size={len(self.value or '')})>"
