from sqlalchemy import Column, Text, DateTime, JSON
from sqlalchemy.orm import declarative_base
from datetime import datetime, timezone

Base = declarative_base()


def _utcnow():
    return datetime.now(timezone.utc)

# PUBLIC_INTERFACE
class KVEntry(Base):
    """
    SQLAlchemy model for one entry of the shared key-value partition.

    Keys are namespaced ("user:alice", "note:<uuid>", "index:notes:<uuid>");
    values are JSON documents.
    """
    __tablename__ = "kv_entries"

    key = Column(Text, primary_key=True)
    value = Column(JSON, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
