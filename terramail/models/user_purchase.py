from sqlalchemy import Column, ForeignKey, Integer, Numeric, String

from terramail.models.base import Base, UTCDateTime, utcnow


class UserPurchase(Base):
    """Entitlement grant; ``plan_id`` is checked on write, not by a constraint."""

    __tablename__ = "user_purchases"

    id = Column(String(36), primary_key=True)
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    plan_id = Column(String(36), nullable=False)
    days_added = Column(Integer, nullable=False)
    amount_paid = Column(Numeric(10, 2, asdecimal=False), nullable=False)
    payment_method = Column(String(32), nullable=False, default="manual")
    created_at = Column(
        UTCDateTime,
        default=utcnow,
        index=True,
    )
