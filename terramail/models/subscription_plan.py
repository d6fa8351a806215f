from sqlalchemy import Boolean, Column, Integer, Numeric, String, Text

from terramail.models.base import Base, UTCDateTime, utcnow


class SubscriptionPlan(Base):
    __tablename__ = "subscription_plans"

    id = Column(String(36), primary_key=True)
    name = Column(String(128), nullable=False)
    days = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2, asdecimal=False), nullable=False)
    description = Column(Text, nullable=False, default="")
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(UTCDateTime, default=utcnow)
