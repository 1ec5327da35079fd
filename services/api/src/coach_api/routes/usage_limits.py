"""Usage limits routes for the signed-in user."""

from fastapi import APIRouter, Depends

from coach_shared.logging.config import get_logger

from ..dependencies.auth import AuthenticatedUser, require_auth
from ..dependencies.quota import (
    get_entitlement_resolver,
    get_quota_gateway,
    get_quota_limits,
    get_usage_ledger,
)
from ..models.usage import (
    ActionQuotaStatus,
    IncrementRequest,
    QuotaStatusResponse,
    UsageRecordResponse,
)
from ..services.entitlement import EntitlementResolver
from ..services.quota_gateway import QuotaGateway
from ..services.quota_status import QuotaLimits, evaluate_quota
from ..services.usage_ledger import ActionType, UsageLedger

logger = get_logger(__name__)
router = APIRouter(prefix="/api/usage-limits", tags=["Usage Limits"])


@router.get("", response_model=UsageRecordResponse, summary="Get Usage Limits")
async def get_usage_limits(
    user: AuthenticatedUser = Depends(require_auth),
    gateway: QuotaGateway = Depends(get_quota_gateway),
) -> UsageRecordResponse:
    """Get today's counters, creating the record or rolling it over to today as needed."""
    record = await gateway.get_current_usage(user.user_id)
    return UsageRecordResponse.model_validate(record)


@router.post("/increment", response_model=UsageRecordResponse, summary="Increment Usage")
async def increment_usage(
    body: IncrementRequest | None = None,
    user: AuthenticatedUser = Depends(require_auth),
    ledger: UsageLedger = Depends(get_usage_ledger),
) -> UsageRecordResponse:
    """Count one more use of an action.

    Returns 400 for a missing body or an unknown ``type`` and 404 when the
    caller has no usage record yet (read ``GET /api/usage-limits`` first).
    """
    record = await ledger.increment(user.user_id, body.type if body else None)
    return UsageRecordResponse.model_validate(record)


@router.get("/status", response_model=QuotaStatusResponse, summary="Get Quota Status")
async def get_quota_status(
    user: AuthenticatedUser = Depends(require_auth),
    gateway: QuotaGateway = Depends(get_quota_gateway),
    resolver: EntitlementResolver = Depends(get_entitlement_resolver),
    limits: QuotaLimits = Depends(get_quota_limits),
) -> QuotaStatusResponse:
    """Get the caller's tier and remaining allowance per action for today."""
    record = await gateway.get_current_usage(user.user_id)
    tier = await resolver.resolve(user.user_id)
    quotas = evaluate_quota(record, tier, limits)

    def status_for(action: ActionType) -> ActionQuotaStatus:
        quota = quotas[action]
        return ActionQuotaStatus(
            used=quota.used,
            limit=quota.limit,
            remaining=quota.remaining,
            allowed=quota.allowed,
        )

    return QuotaStatusResponse(
        tier=tier.value,
        email=status_for(ActionType.EMAIL),
        coaching=status_for(ActionType.COACHING),
        difficult_conversation=status_for(ActionType.DIFFICULT_CONVERSATION),
        usage=UsageRecordResponse.model_validate(record),
    )
