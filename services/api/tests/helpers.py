"""Data builders shared by the API tests."""

from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import jwt
from sqlalchemy.ext.asyncio import AsyncSession

from coach_shared.db.models import Profile, Subscription, UsageLimit, User

TEST_JWT_SECRET = "test-secret-key-for-access-tokens-0123456789"

# Noon UTC keeps the fixed instant away from local midnight in most zones;
# day-boundary tests derive their bounds from local_day_bounds instead.
FIXED_NOW = datetime(2026, 3, 10, 12, 0, 0, tzinfo=UTC)


async def create_user(
    session: AsyncSession,
    email: str,
    full_name: str | None = None,
    is_admin: bool = False,
) -> User:
    """Insert a user and its profile."""
    user = User(id=uuid4(), email=email)
    session.add(user)
    await session.flush()
    session.add(
        Profile(
            id=user.id,
            email=email,
            full_name=full_name,
            is_admin=is_admin,
        )
    )
    await session.flush()
    return user


async def create_usage(
    session: AsyncSession,
    user_id: UUID,
    email: int = 0,
    coaching: int = 0,
    difficult_conversation: int = 0,
    last_reset: datetime | None = FIXED_NOW,
) -> UsageLimit:
    """Insert a usage row; ``last_reset`` drives staleness."""
    record = UsageLimit(
        id=user_id,
        email_generations_today=email,
        email_generations_last_reset=last_reset,
        coaching_sessions_today=coaching,
        coaching_sessions_last_reset=last_reset,
        difficult_conversations_today=difficult_conversation,
        difficult_conversations_last_reset=last_reset,
        updated_at=FIXED_NOW,
    )
    session.add(record)
    await session.flush()
    return record


async def create_subscription(session: AsyncSession, user_id: UUID, **values) -> Subscription:
    subscription = Subscription(user_id=user_id, **values)
    session.add(subscription)
    await session.flush()
    return subscription


def make_token(
    user_id: UUID | str,
    secret: str = TEST_JWT_SECRET,
    expires_in: timedelta = timedelta(hours=1),
    claim: str = "userId",
    email: str = "member@example.com",
) -> str:
    """Sign an HS256 access token for ``user_id``."""
    payload = {
        claim: str(user_id),
        "email": email,
        "exp": datetime.now(UTC) + expires_in,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def bearer(user_id: UUID | str, **kwargs) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id, **kwargs)}"}
