"""
KeyValueEntry Model

Durable string-keyed storage for client state.
"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Text

from vidstream.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class KeyValueEntry(Base):
    """
    One stored value.

    Values are opaque strings; callers serialize JSON themselves.
    """
    __tablename__ = "key_value_entries"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    written_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    def __repr__(self):
        return f"<KeyValueEntry(key={self.key}, size={len(self.value or '')})>"
