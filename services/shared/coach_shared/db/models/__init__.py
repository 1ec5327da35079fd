"""SQLAlchemy database models for the leadcoach account store."""

from .base import Base, TimestampMixin, as_utc, generate_uuid, utcnow
from .subscription import Subscription, SubscriptionPlan, SubscriptionStatus
from .usage_limit import UsageLimit
from .user import Profile, User

__all__ = [
    "Base",
    "Profile",
    "Subscription",
    "SubscriptionPlan",
    "SubscriptionStatus",
    "TimestampMixin",
    "UsageLimit",
    "User",
    "as_utc",
    "generate_uuid",
    "utcnow",
]
