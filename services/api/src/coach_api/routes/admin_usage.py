"""Admin routes for inspecting and overriding usage counters."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from coach_shared.db.connection import get_session

from ..dependencies.auth import AuthenticatedUser, require_admin
from ..dependencies.quota import get_admin_override
from ..models.usage import UsageOverrideRequest, UsageRecordResponse, UserUsageStats
from ..services.admin_override import AdminOverride
from ..services.admin_usage import list_usage_overview

router = APIRouter(prefix="/api/usage-limits", tags=["Admin - Usage Limits"])


@router.get("/all", response_model=list[UserUsageStats], summary="List All Users' Usage")
async def list_all_usage(
    admin: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
) -> list[UserUsageStats]:
    """Every user's counters, subscription and derived tier, sorted by email (admin only)."""
    overview = await list_usage_overview(session)
    return [
        UserUsageStats(
            userId=row.user_id,
            email=row.email,
            fullName=row.full_name,
            emailGenerations=row.email_generations,
            coachingSessions=row.coaching_sessions,
            difficultConversations=row.difficult_conversations,
            lastReset=row.last_reset,
            derivedTier=row.tier.value,
            subscriptionType=row.tier.value,
            subscriptionStatus=row.subscription_status,
            subscriptionPlan=row.subscription_plan,
            subscriptionExpiresAt=row.subscription_expires_at,
        )
        for row in overview
    ]


@router.put("/{user_id}", response_model=UsageRecordResponse, summary="Set Usage Counters")
async def set_usage_counters(
    user_id: UUID,
    body: UsageOverrideRequest,
    admin: AuthenticatedUser = Depends(require_admin),
    override: AdminOverride = Depends(get_admin_override),
) -> UsageRecordResponse:
    """Overwrite a user's counters, bypassing the daily reset (admin only).

    ``reset_all`` zeroes every counter and ignores the individual fields.
    Returns 404 when the user does not exist.
    """
    record = await override.set_counters(
        user_id,
        email=body.email_generations_today,
        coaching=body.coaching_sessions_today,
        difficult_conversation=body.difficult_conversations_today,
        reset_all=body.reset_all,
        admin_id=admin.user_id,
    )
    return UsageRecordResponse.model_validate(record)
