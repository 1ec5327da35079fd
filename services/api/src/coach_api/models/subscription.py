"""Request and response models for subscriptions."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, field_validator

from coach_shared.db.models import SubscriptionPlan, SubscriptionStatus, as_utc

from .base import BaseResponse


class SubscriptionResponse(BaseResponse):
    """Stored subscription, or the implicit free tier when there is none."""

    user_id: UUID | None = None
    stripe_customer_id: str | None = None
    stripe_subscription_id: str | None = None
    status: str = SubscriptionStatus.FREE.value
    plan: str = SubscriptionPlan.FREE.value
    current_period_start: datetime | None = None
    current_period_end: datetime | None = None
    cancel_at_period_end: bool = False
    canceled_at: datetime | None = None
    trial_start: datetime | None = None
    trial_end: datetime | None = None
    tier: str

    @field_validator(
        "current_period_start",
        "current_period_end",
        "canceled_at",
        "trial_start",
        "trial_end",
    )
    @classmethod
    def _utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)


class SubscriptionUpdateRequest(BaseModel):
    """Full replacement of a user's subscription, as sent by billing webhooks."""

    stripe_customer_id: str | None = None
    stripe_subscription_id: str | None = None
    status: SubscriptionStatus = SubscriptionStatus.FREE
    plan: SubscriptionPlan = SubscriptionPlan.FREE
    current_period_start: datetime | None = None
    current_period_end: datetime | None = None
    cancel_at_period_end: bool = False
    canceled_at: datetime | None = None
    trial_start: datetime | None = None
    trial_end: datetime | None = None
