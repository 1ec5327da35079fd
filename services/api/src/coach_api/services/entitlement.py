"""Subscription tier derivation.

The tier is never stored. It is recomputed from the subscription's status,
plan and ``current_period_end`` every time it is needed, so an expired
subscription can never be reported as PRO because of a stale cached flag.
"""

from datetime import datetime, timedelta
from enum import StrEnum
from typing import Any, Protocol
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from coach_shared.db.models import Subscription, as_utc, utcnow
from coach_shared.logging.config import get_logger

from .exceptions import StorageFailureError

logger = get_logger(__name__)

PRO_STATUSES = frozenset({"active", "trialing"})
PRO_PLANS = frozenset({"pro"})

# Clock/timezone jitter absorbed before a subscription counts as expired.
EXPIRY_TOLERANCE = timedelta(seconds=1)


class Tier(StrEnum):
    PRO = "PRO"
    FREE = "FREE"


class SubscriptionLike(Protocol):
    status: str | None
    plan: str | None
    current_period_end: Any


def _parse_period_end(value: Any) -> datetime:
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, str):
        return as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    raise TypeError(f"Unsupported expiration value: {value!r}")


def derive_tier(
    subscription: SubscriptionLike | None,
    now: datetime | None = None,
) -> Tier:
    """Resolve PRO or FREE for a subscription row (or its absence).

    1. PRO when the status is active/trialing or the plan is pro.
    2. A PRO subscription whose ``current_period_end`` lies more than
       ``EXPIRY_TOLERANCE`` in the past is downgraded to FREE. The exact
       boundary still counts as valid.
    3. No subscription means the implicit free tier.

    An expiration value that cannot be parsed leaves the status/plan
    decision in place.
    """
    if subscription is None:
        return Tier.FREE

    status = subscription.status or "free"
    plan = subscription.plan or "free"
    is_pro = status in PRO_STATUSES or plan in PRO_PLANS

    if is_pro and subscription.current_period_end:
        try:
            expires_at = _parse_period_end(subscription.current_period_end)
        except (TypeError, ValueError):
            logger.warning(
                "Could not parse subscription expiration, keeping tier",
                current_period_end=str(subscription.current_period_end),
            )
        else:
            now = as_utc(now) if now is not None else utcnow()
            if now - expires_at > EXPIRY_TOLERANCE:
                logger.debug(
                    "Subscription expired, resolving as free",
                    expires_at=expires_at.isoformat(),
                    now=now.isoformat(),
                )
                is_pro = False

    return Tier.PRO if is_pro else Tier.FREE


class EntitlementResolver:
    """Loads a user's subscription and resolves its tier."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_subscription(self, user_id: UUID) -> Subscription | None:
        try:
            result = await self.session.execute(
                select(Subscription).where(Subscription.user_id == user_id)
            )
        except SQLAlchemyError as e:
            logger.error("Failed to load subscription", user_id=str(user_id), exc_info=True)
            raise StorageFailureError("Failed to get subscription") from e
        return result.scalar_one_or_none()

    async def resolve(self, user_id: UUID, now: datetime | None = None) -> Tier:
        subscription = await self.get_subscription(user_id)
        return derive_tier(subscription, now=now)
