"""Quota, entitlement and admin-override services."""

from .admin_override import AdminOverride
from .admin_usage import UserUsageOverview, list_usage_overview
from .entitlement import EntitlementResolver, Tier, derive_tier
from .exceptions import (
    InvalidActionTypeError,
    StorageFailureError,
    UsageLimitsError,
    UsageRecordNotFoundError,
    UserNotFoundError,
)
from .quota_gateway import QuotaGateway
from .quota_status import ActionQuota, QuotaLimits, evaluate_quota
from .reset_policy import is_stale, local_day_bounds
from .usage_ledger import ActionType, UsageLedger

__all__ = [
    "ActionQuota",
    "ActionType",
    "AdminOverride",
    "EntitlementResolver",
    "InvalidActionTypeError",
    "QuotaGateway",
    "QuotaLimits",
    "StorageFailureError",
    "Tier",
    "UsageLedger",
    "UsageLimitsError",
    "UsageRecordNotFoundError",
    "UserNotFoundError",
    "UserUsageOverview",
    "derive_tier",
    "evaluate_quota",
    "is_stale",
    "list_usage_overview",
    "local_day_bounds",
]
