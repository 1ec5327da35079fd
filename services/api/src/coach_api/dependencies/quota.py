"""Quota service dependencies for route handlers."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from coach_shared.config import get_settings
from coach_shared.db.connection import get_session

from ..services.admin_override import AdminOverride
from ..services.entitlement import EntitlementResolver
from ..services.quota_gateway import QuotaGateway
from ..services.quota_status import QuotaLimits
from ..services.usage_ledger import UsageLedger


def get_quota_limits() -> QuotaLimits:
    """Tier ceilings from configuration."""
    return QuotaLimits.from_settings(get_settings().quota)


async def get_usage_ledger(session: AsyncSession = Depends(get_session)) -> UsageLedger:
    return UsageLedger(session)


async def get_quota_gateway(session: AsyncSession = Depends(get_session)) -> QuotaGateway:
    return QuotaGateway(session)


async def get_admin_override(session: AsyncSession = Depends(get_session)) -> AdminOverride:
    return AdminOverride(session)


async def get_entitlement_resolver(
    session: AsyncSession = Depends(get_session),
) -> EntitlementResolver:
    return EntitlementResolver(session)
