from sqlalchemy import JSON, Boolean, Column, Enum, Integer, String

from terramail.models.base import Base, UTCDateTime, utcnow

ROLES = ("user", "admin")


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(Enum(*ROLES, name="user_role"), nullable=False, default="user")
    subscription_days = Column(Integer, nullable=False, default=0)
    allowed_ips = Column(JSON, nullable=False, default=list)
    is_banned = Column(Boolean, nullable=False, default=False)
    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow)


__all__ = ["User", "ROLES"]
