"""Per-user daily usage counters."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, utcnow


class UsageLimit(Base):
    """One row per user holding today's counters for the tracked actions.

    Created lazily on first quota access (or at signup). Each counter has its
    own reset timestamp, but the daily reset keys off
    ``email_generations_last_reset`` and rolls all three over together.
    """

    __tablename__ = "users_limits"

    id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    email_generations_today: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    email_generations_last_reset: Mapped[datetime | None] = mapped_column(nullable=True)
    coaching_sessions_today: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    coaching_sessions_last_reset: Mapped[datetime | None] = mapped_column(nullable=True)
    difficult_conversations_today: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    difficult_conversations_last_reset: Mapped[datetime | None] = mapped_column(nullable=True)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
