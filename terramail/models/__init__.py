from .base import Base
from .user import User
from .login_attempt import LoginAttempt
from .processing_session import ProcessingSession
from .subscription_plan import SubscriptionPlan
from .user_purchase import UserPurchase
from .error_code import ErrorCode

__all__ = [
    "Base",
    "User",
    "LoginAttempt",
    "ProcessingSession",
    "SubscriptionPlan",
    "UserPurchase",
    "ErrorCode",
]
