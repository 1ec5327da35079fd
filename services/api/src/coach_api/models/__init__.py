"""API request/response models."""

from .base import BaseResponse, ErrorDetail, ErrorResponse
from .subscription import SubscriptionResponse, SubscriptionUpdateRequest
from .usage import (
    ActionQuotaStatus,
    IncrementRequest,
    QuotaStatusResponse,
    UsageOverrideRequest,
    UsageRecordResponse,
    UserUsageStats,
)

__all__ = [
    "ActionQuotaStatus",
    "BaseResponse",
    "ErrorDetail",
    "ErrorResponse",
    "IncrementRequest",
    "QuotaStatusResponse",
    "SubscriptionResponse",
    "SubscriptionUpdateRequest",
    "UsageOverrideRequest",
    "UsageRecordResponse",
    "UserUsageStats",
]
