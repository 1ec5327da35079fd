"""Request and response models for usage limits."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from coach_shared.db.models import as_utc

from .base import BaseResponse


class UsageRecordResponse(BaseResponse):
    """A user's stored counters and reset timestamps."""

    id: UUID
    email_generations_today: int
    email_generations_last_reset: datetime | None
    coaching_sessions_today: int
    coaching_sessions_last_reset: datetime | None
    difficult_conversations_today: int
    difficult_conversations_last_reset: datetime | None
    updated_at: datetime | None

    @field_validator(
        "email_generations_last_reset",
        "coaching_sessions_last_reset",
        "difficult_conversations_last_reset",
        "updated_at",
    )
    @classmethod
    def _utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)


class IncrementRequest(BaseModel):
    """Body of ``POST /increment``.

    ``type`` takes any JSON value; ``ActionType.parse`` rejects whatever is
    not a tracked action with a 400.
    """

    type: Any = Field(
        default=None,
        description="One of email, coaching, difficult_conversation",
    )


class UsageOverrideRequest(BaseModel):
    """Admin override body. Omitted counters are left unchanged."""

    email_generations_today: int | None = Field(default=None, ge=0)
    coaching_sessions_today: int | None = Field(default=None, ge=0)
    difficult_conversations_today: int | None = Field(default=None, ge=0)
    reset_all: bool = False


class ActionQuotaStatus(BaseModel):
    used: int
    limit: int | None
    remaining: int | None
    allowed: bool


class QuotaStatusResponse(BaseModel):
    """Tier and per-action allowance for the caller, as of today."""

    tier: str
    email: ActionQuotaStatus
    coaching: ActionQuotaStatus
    difficult_conversation: ActionQuotaStatus
    usage: UsageRecordResponse


class UserUsageStats(BaseModel):
    """Admin overview row, keyed the way the admin dashboard consumes it."""

    userId: UUID
    email: str | None
    fullName: str | None
    emailGenerations: int
    coachingSessions: int
    difficultConversations: int
    lastReset: datetime | None
    derivedTier: str
    subscriptionType: str
    subscriptionStatus: str
    subscriptionPlan: str
    subscriptionExpiresAt: datetime | None
