"""Database models for persisted progress."""
from sqlalchemy import Column, DateTime, Integer, String, Text

from spellsan.models.base import Base, TimestampMixin


class ProgressSnapshot(Base, TimestampMixin):
    """Serialized progress record, one row per user/device storage key."""

    __tablename__ = "progress_snapshots"

    id = Column(Integer, primary_key=True)
    storage_key = Column(String, unique=True, nullable=False, index=True)
    version = Column(String, nullable=False)
    payload = Column(Text, nullable=False)  # JSON document
    saved_at = Column(DateTime(timezone=True), nullable=False)
