"""Shared database module."""

from .connection import (
    DatabaseConnection,
    create_engine,
    create_session_factory,
    dialect_insert,
    get_database_url,
    get_db,
    get_session,
    normalize_database_url,
)
from .models import (
    Base,
    Profile,
    Subscription,
    SubscriptionPlan,
    SubscriptionStatus,
    TimestampMixin,
    UsageLimit,
    User,
    as_utc,
    generate_uuid,
    utcnow,
)

__all__ = [
    "Base",
    "DatabaseConnection",
    "Profile",
    "Subscription",
    "SubscriptionPlan",
    "SubscriptionStatus",
    "TimestampMixin",
    "UsageLimit",
    "User",
    "as_utc",
    "create_engine",
    "create_session_factory",
    "dialect_insert",
    "generate_uuid",
    "get_database_url",
    "get_db",
    "get_session",
    "normalize_database_url",
    "utcnow",
]
