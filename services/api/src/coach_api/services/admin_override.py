"""Privileged direct edits of a user's usage counters.

Overrides bypass the daily reset policy entirely so support staff can put a
record into any state without waiting for a calendar rollover.
"""

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from coach_shared.db.connection import dialect_insert
from coach_shared.db.models import UsageLimit, User, utcnow
from coach_shared.logging.config import get_logger

from .exceptions import StorageFailureError, UserNotFoundError
from .usage_ledger import Clock, UsageLedger

logger = get_logger(__name__)


class AdminOverride:
    """Sets counters on behalf of an administrator.

    Authorization is the caller's job (see ``require_admin``); this class
    assumes the capability has already been checked.
    """

    def __init__(self, session: AsyncSession, clock: Clock = utcnow):
        self.session = session
        self.ledger = UsageLedger(session, clock)

    async def set_counters(
        self,
        user_id: UUID,
        email: int | None = None,
        coaching: int | None = None,
        difficult_conversation: int | None = None,
        reset_all: bool = False,
        admin_id: UUID | None = None,
    ) -> UsageLimit:
        """Overwrite the supplied counters, or zero everything with ``reset_all``.

        ``reset_all`` zeroes all three counters and stamps all three reset
        timestamps, ignoring any supplied values. Otherwise only the supplied
        counters change. A missing record is created from the supplied values,
        with omitted ones at 0.

        Raises:
            UserNotFoundError: no account exists for ``user_id``.
            StorageFailureError: the write failed.
        """
        now = self.ledger.now()
        supplied = {
            UsageLimit.email_generations_today.key: email,
            UsageLimit.coaching_sessions_today.key: coaching,
            UsageLimit.difficult_conversations_today.key: difficult_conversation,
        }
        if reset_all:
            supplied = {key: 0 for key in supplied}
        changes = {key: value for key, value in supplied.items() if value is not None}

        try:
            user_exists = await self.session.scalar(select(User.id).where(User.id == user_id))
            if user_exists is None:
                raise UserNotFoundError(user_id)

            inserted = await self.session.execute(
                dialect_insert(self.session, UsageLimit)
                .values(
                    id=user_id,
                    email_generations_today=changes.get("email_generations_today", 0),
                    email_generations_last_reset=now,
                    coaching_sessions_today=changes.get("coaching_sessions_today", 0),
                    coaching_sessions_last_reset=now,
                    difficult_conversations_today=changes.get("difficult_conversations_today", 0),
                    difficult_conversations_last_reset=now,
                    updated_at=now,
                )
                .on_conflict_do_nothing(index_elements=["id"])
            )

            if not inserted.rowcount:
                values = dict(changes)
                if reset_all:
                    values.update(
                        email_generations_last_reset=now,
                        coaching_sessions_last_reset=now,
                        difficult_conversations_last_reset=now,
                    )
                if values:
                    values["updated_at"] = now
                    await self.session.execute(
                        update(UsageLimit)
                        .where(UsageLimit.id == user_id)
                        .values(**values)
                        .execution_options(synchronize_session=False)
                    )

            record = await self.ledger.get(user_id)
        except SQLAlchemyError as e:
            logger.error("Failed to set usage limits", user_id=str(user_id), exc_info=True)
            raise StorageFailureError("Failed to set limits") from e

        logger.info(
            "Admin override applied to usage limits",
            user_id=str(user_id),
            admin_id=str(admin_id) if admin_id else None,
            reset_all=reset_all,
            created=bool(inserted.rowcount),
            **changes,
        )
        return record
