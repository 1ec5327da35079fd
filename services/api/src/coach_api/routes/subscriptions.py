"""Subscription read and upsert routes."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from coach_shared.db.connection import dialect_insert, get_session
from coach_shared.db.models import Subscription, User, as_utc, utcnow
from coach_shared.logging.config import get_logger

from ..dependencies.auth import AuthenticatedUser, is_admin, require_auth
from ..dependencies.quota import get_entitlement_resolver
from ..models.subscription import SubscriptionResponse, SubscriptionUpdateRequest
from ..services.entitlement import EntitlementResolver, derive_tier
from ..services.exceptions import StorageFailureError, UserNotFoundError

logger = get_logger(__name__)
router = APIRouter(prefix="/api/subscriptions", tags=["Subscriptions"])


def _to_response(subscription: Subscription | None) -> SubscriptionResponse:
    tier = derive_tier(subscription)
    if subscription is None:
        return SubscriptionResponse(tier=tier.value)
    return SubscriptionResponse.model_validate(
        {
            **{
                column.key: getattr(subscription, column.key)
                for column in Subscription.__table__.columns
            },
            "tier": tier.value,
        }
    )


@router.get("", response_model=SubscriptionResponse, summary="Get Subscription")
async def get_subscription(
    user: AuthenticatedUser = Depends(require_auth),
    resolver: EntitlementResolver = Depends(get_entitlement_resolver),
) -> SubscriptionResponse:
    """Get the caller's subscription, or the free tier when none is stored."""
    subscription = await resolver.get_subscription(user.user_id)
    return _to_response(subscription)


@router.put("/{user_id}", response_model=SubscriptionResponse, summary="Update Subscription")
async def update_subscription(
    user_id: UUID,
    body: SubscriptionUpdateRequest,
    user: AuthenticatedUser = Depends(require_auth),
    session: AsyncSession = Depends(get_session),
) -> SubscriptionResponse:
    """Create or replace a user's subscription (admin, or the user themselves).

    Billing webhooks land here; the stored status, plan and period end feed
    tier derivation on every subsequent read.
    """
    if user.user_id != user_id and not await is_admin(session, user.user_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Unauthorized")

    values = {
        key: as_utc(value) if isinstance(value, datetime) else value
        for key, value in body.model_dump().items()
    }
    values["status"] = body.status.value
    values["plan"] = body.plan.value

    try:
        if await session.scalar(select(User.id).where(User.id == user_id)) is None:
            raise UserNotFoundError(user_id)

        now = utcnow()
        stmt = dialect_insert(session, Subscription).values(
            user_id=user_id, created_at=now, updated_at=now, **values
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id"],
            set_={**{key: stmt.excluded[key] for key in values}, "updated_at": now},
        )
        await session.execute(stmt)

        result = await session.execute(
            select(Subscription)
            .where(Subscription.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        subscription = result.scalar_one()
    except SQLAlchemyError as e:
        logger.error("Failed to update subscription", user_id=str(user_id), exc_info=True)
        raise StorageFailureError("Failed to update subscription") from e

    logger.info(
        "Subscription updated",
        user_id=str(user_id),
        status=subscription.status,
        plan=subscription.plan,
        updated_by=str(user.user_id),
    )
    return _to_response(subscription)
