"""Enforcement read path for usage counters.

Route handlers that gate an action read the caller's counters through
:class:`QuotaGateway`, which rolls a stale record over to today before
returning it.
"""

from uuid import UUID

from sqlalchemy import or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from coach_shared.db.models import UsageLimit, utcnow
from coach_shared.logging.config import get_logger

from .exceptions import StorageFailureError, UsageRecordNotFoundError
from .reset_policy import is_stale, local_day_bounds
from .usage_ledger import Clock, UsageLedger

logger = get_logger(__name__)


class QuotaGateway:
    """Fetch-with-lazy-reset over the usage ledger."""

    def __init__(self, session: AsyncSession, clock: Clock = utcnow):
        self.session = session
        self.ledger = UsageLedger(session, clock)

    async def get_current_usage(self, user_id: UUID) -> UsageLimit:
        """Return the user's counters as of today.

        Staleness is decided by ``email_generations_last_reset`` alone and all
        three counters roll over together. The reset is one conditional
        UPDATE whose WHERE clause repeats the staleness test, so when two
        requests race to reset the same record the loser matches no row and
        cannot wipe an increment made after the winner's reset. Calling this
        again on the same day is a no-op.
        """
        record = await self.ledger.fetch(user_id)
        now = self.ledger.now()
        if not is_stale(record.email_generations_last_reset, now):
            return record

        day_start, day_end = local_day_bounds(now)
        last_reset = UsageLimit.email_generations_last_reset
        try:
            result = await self.session.execute(
                update(UsageLimit)
                .where(
                    UsageLimit.id == user_id,
                    or_(
                        last_reset.is_(None),
                        last_reset < day_start,
                        last_reset >= day_end,
                    ),
                )
                .values(
                    email_generations_today=0,
                    email_generations_last_reset=now,
                    coaching_sessions_today=0,
                    coaching_sessions_last_reset=now,
                    difficult_conversations_today=0,
                    difficult_conversations_last_reset=now,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount:
                logger.info("Reset daily usage counters", user_id=str(user_id))
            record = await self.ledger.get(user_id)
        except SQLAlchemyError as e:
            logger.error("Failed to reset usage limits", user_id=str(user_id), exc_info=True)
            raise StorageFailureError("Failed to get usage limits") from e

        if record is None:
            raise UsageRecordNotFoundError(user_id)
        return record
