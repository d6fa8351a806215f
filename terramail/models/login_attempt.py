from sqlalchemy import Boolean, Column, Index, Integer, String

from .base import Base, UTCDateTime, utcnow


class LoginAttempt(Base):
    """Append-only audit row for one authentication attempt."""

    __tablename__ = "login_attempts"
    __table_args__ = (
        Index("idx_login_attempts_ip_created", "ip_address", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    ip_address = Column(String(64), nullable=False)
    user_email = Column(String(255), nullable=True)
    success = Column(Boolean, nullable=False)
    created_at = Column(
        UTCDateTime,
        default=utcnow,
        nullable=False,
        index=True,
    )
