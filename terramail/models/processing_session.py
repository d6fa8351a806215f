from __future__ import annotations

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String

from terramail.models.base import Base, UTCDateTime, utcnow

COUNTER_FIELDS = ("approved_count", "rejected_count", "loaded_count", "tested_count")


class ProcessingSession(Base):
    __tablename__ = "processing_sessions"

    id = Column(String(36), primary_key=True)
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    approved_count = Column(Integer, nullable=False, default=0)
    rejected_count = Column(Integer, nullable=False, default=0)
    loaded_count = Column(Integer, nullable=False, default=0)
    tested_count = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=False)
    created_at = Column(UTCDateTime, default=utcnow, nullable=False)
    updated_at = Column(
        UTCDateTime,
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )
