"""Health check endpoint."""

import asyncio
from datetime import datetime, timezone
from typing import Literal

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError

from coach_shared.db.connection import get_db
from coach_shared.logging.config import get_logger

logger = get_logger(__name__)
router = APIRouter()

DB_PROBE_TIMEOUT = 5  # seconds


class HealthStatus(BaseModel):
    status: Literal["healthy", "degraded"]
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    version: str
    checks: dict[str, bool] = Field(default_factory=dict)


async def _database_reachable() -> bool:
    try:
        await asyncio.wait_for(get_db().connect(), timeout=DB_PROBE_TIMEOUT)
    except (SQLAlchemyError, OSError, asyncio.TimeoutError) as e:
        logger.warning("Database probe failed", error=str(e))
        return False
    return True


@router.get("/health", response_model=HealthStatus, summary="Health Check")
async def health_check(request: Request) -> HealthStatus:
    """Liveness probe.

    ``database`` reports whether startup initialized the schema;
    ``database_connection`` is a live probe, run only after a successful
    startup. Either failing marks the service degraded.
    """
    checks = {"api": True, "database": getattr(request.app.state, "db_initialized", False)}
    if checks["database"]:
        checks["database_connection"] = await _database_reachable()

    healthy = all(checks.values())
    return HealthStatus(
        status="healthy" if healthy else "degraded",
        version=request.app.version,
        checks=checks,
    )
