"""Aggregate usage view for administrators."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from coach_shared.db.models import Profile, Subscription, UsageLimit, as_utc, utcnow
from coach_shared.logging.config import get_logger

from .entitlement import Tier, derive_tier
from .exceptions import StorageFailureError

logger = get_logger(__name__)


@dataclass
class UserUsageOverview:
    """One row of the admin overview."""

    user_id: UUID
    email: str | None
    full_name: str | None
    email_generations: int
    coaching_sessions: int
    difficult_conversations: int
    last_reset: datetime | None
    subscription_status: str
    subscription_plan: str
    subscription_expires_at: datetime | None
    tier: Tier


async def list_usage_overview(
    session: AsyncSession,
    now: datetime | None = None,
) -> list[UserUsageOverview]:
    """Every profile with its stored counters and derived tier, sorted by email.

    Counters are reported as stored; the lazy daily reset is not applied
    here. Users without a usage row show zeros, users without a
    subscription show the free status and plan.
    """
    now = now or utcnow()
    query = (
        select(
            Profile.id,
            Profile.email,
            Profile.full_name,
            func.coalesce(UsageLimit.email_generations_today, 0),
            func.coalesce(UsageLimit.coaching_sessions_today, 0),
            func.coalesce(UsageLimit.difficult_conversations_today, 0),
            UsageLimit.email_generations_last_reset,
            Subscription,
        )
        .outerjoin(UsageLimit, UsageLimit.id == Profile.id)
        .outerjoin(Subscription, Subscription.user_id == Profile.id)
        .order_by(Profile.email.asc())
    )

    try:
        result = await session.execute(query)
        rows = result.all()
    except SQLAlchemyError as e:
        logger.error("Failed to load usage overview", exc_info=True)
        raise StorageFailureError("Failed to get users stats") from e

    overview = []
    for (
        user_id,
        email,
        full_name,
        email_generations,
        coaching_sessions,
        difficult_conversations,
        last_reset,
        subscription,
    ) in rows:
        overview.append(
            UserUsageOverview(
                user_id=user_id,
                email=email,
                full_name=full_name or None,
                email_generations=int(email_generations),
                coaching_sessions=int(coaching_sessions),
                difficult_conversations=int(difficult_conversations),
                last_reset=as_utc(last_reset),
                subscription_status=(subscription.status if subscription else None) or "free",
                subscription_plan=(subscription.plan if subscription else None) or "free",
                subscription_expires_at=(
                    as_utc(subscription.current_period_end) if subscription else None
                ),
                tier=derive_tier(subscription, now=now),
            )
        )
    return overview
