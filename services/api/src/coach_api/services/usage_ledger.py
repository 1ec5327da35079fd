"""Per-user daily usage counters.

Every mutation is a single SQL statement against the user's ``users_limits``
row so concurrent requests for the same user never lose an update: increments
are ``SET c = c + 1`` on the server side, creation is an insert that ignores
a conflicting row.
"""

from collections.abc import Callable
from datetime import datetime
from enum import StrEnum
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from coach_shared.db.connection import dialect_insert
from coach_shared.db.models import UsageLimit, User, as_utc, utcnow
from coach_shared.logging.config import get_logger

from .exceptions import (
    InvalidActionTypeError,
    StorageFailureError,
    UsageRecordNotFoundError,
    UserNotFoundError,
)

logger = get_logger(__name__)

Clock = Callable[[], datetime]


class ActionType(StrEnum):
    """Actions whose daily usage is tracked."""

    EMAIL = "email"
    COACHING = "coaching"
    DIFFICULT_CONVERSATION = "difficult_conversation"

    @property
    def counter(self):
        """The ``users_limits`` column counting this action."""
        return COUNTER_COLUMNS[self]

    @classmethod
    def parse(cls, value: object) -> "ActionType":
        try:
            return cls(value)
        except ValueError:
            raise InvalidActionTypeError(value) from None


COUNTER_COLUMNS = {
    ActionType.EMAIL: UsageLimit.email_generations_today,
    ActionType.COACHING: UsageLimit.coaching_sessions_today,
    ActionType.DIFFICULT_CONVERSATION: UsageLimit.difficult_conversations_today,
}


class UsageLedger:
    """Reads, creates and increments usage records."""

    def __init__(self, session: AsyncSession, clock: Clock = utcnow):
        self.session = session
        self.clock = clock

    def now(self) -> datetime:
        """Current time from the injected clock, as aware UTC."""
        return as_utc(self.clock())

    async def get(self, user_id: UUID) -> UsageLimit | None:
        """Load the stored record, bypassing any cached instance in the session."""
        result = await self.session.execute(
            select(UsageLimit)
            .where(UsageLimit.id == user_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def fetch(self, user_id: UUID) -> UsageLimit:
        """Return the user's record, creating a zeroed one if none exists.

        No reset is applied here; enforcement reads go through
        :class:`~coach_api.services.quota_gateway.QuotaGateway`.

        Raises:
            UserNotFoundError: no account exists for ``user_id``.
            StorageFailureError: the read or insert failed.
        """
        try:
            record = await self.get(user_id)
            if record is not None:
                return record

            user_exists = await self.session.scalar(select(User.id).where(User.id == user_id))
            if user_exists is None:
                raise UserNotFoundError(user_id)

            now = self.now()
            stmt = (
                dialect_insert(self.session, UsageLimit)
                .values(
                    id=user_id,
                    email_generations_today=0,
                    email_generations_last_reset=now,
                    coaching_sessions_today=0,
                    coaching_sessions_last_reset=now,
                    difficult_conversations_today=0,
                    difficult_conversations_last_reset=now,
                    updated_at=now,
                )
                .on_conflict_do_nothing(index_elements=["id"])
            )
            result = await self.session.execute(stmt)
            if result.rowcount:
                logger.info("Created usage limits record", user_id=str(user_id))

            record = await self.get(user_id)
        except SQLAlchemyError as e:
            logger.error("Failed to fetch usage limits", user_id=str(user_id), exc_info=True)
            raise StorageFailureError("Failed to get usage limits") from e

        if record is None:
            raise StorageFailureError("Failed to get usage limits")
        return record

    async def increment(self, user_id: UUID, action: ActionType | str) -> UsageLimit:
        """Add one to the counter for ``action``.

        Raises:
            InvalidActionTypeError: ``action`` is not a tracked action.
            UsageRecordNotFoundError: the user has no record yet. Increment
                never creates one.
            StorageFailureError: the update failed.
        """
        action = ActionType.parse(action)
        column = action.counter

        try:
            result = await self.session.execute(
                update(UsageLimit)
                .where(UsageLimit.id == user_id)
                .values({column: column + 1, UsageLimit.updated_at: self.now()})
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise UsageRecordNotFoundError(user_id)
            record = await self.get(user_id)
        except SQLAlchemyError as e:
            logger.error(
                "Failed to increment usage",
                user_id=str(user_id),
                action=action.value,
                exc_info=True,
            )
            raise StorageFailureError("Failed to increment usage") from e

        logger.info(
            "Incremented usage counter",
            user_id=str(user_id),
            action=action.value,
            value=getattr(record, column.key),
        )
        return record
