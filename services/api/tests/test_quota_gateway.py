"""Tests for the enforcement read path and its lazy daily reset."""

from datetime import timedelta

import pytest

from coach_api.services import quota_gateway
from coach_api.services.quota_gateway import QuotaGateway
from coach_api.services.reset_policy import local_day_bounds
from coach_shared.db.models import as_utc

from helpers import FIXED_NOW, create_usage


class TestGetCurrentUsage:
    """Tests for QuotaGateway.get_current_usage."""

    @pytest.mark.asyncio
    async def test_creates_record_on_first_access(self, session, member, clock):
        record = await QuotaGateway(session, clock).get_current_usage(member.id)

        assert record.id == member.id
        assert record.email_generations_today == 0
        assert as_utc(record.email_generations_last_reset) == FIXED_NOW

    @pytest.mark.asyncio
    async def test_fresh_record_is_unchanged(self, session, member, clock):
        day_start, _ = local_day_bounds(FIXED_NOW)
        await create_usage(session, member.id, email=2, coaching=1, last_reset=day_start)

        record = await QuotaGateway(session, clock).get_current_usage(member.id)

        assert record.email_generations_today == 2
        assert record.coaching_sessions_today == 1
        assert as_utc(record.email_generations_last_reset) == day_start

    @pytest.mark.asyncio
    async def test_stale_record_resets_all_counters(self, session, member, clock):
        await create_usage(
            session,
            member.id,
            email=3,
            coaching=1,
            difficult_conversation=1,
            last_reset=FIXED_NOW - timedelta(days=2),
        )

        record = await QuotaGateway(session, clock).get_current_usage(member.id)

        assert record.email_generations_today == 0
        assert record.coaching_sessions_today == 0
        assert record.difficult_conversations_today == 0
        assert as_utc(record.email_generations_last_reset) == FIXED_NOW
        assert as_utc(record.coaching_sessions_last_reset) == FIXED_NOW
        assert as_utc(record.difficult_conversations_last_reset) == FIXED_NOW

    @pytest.mark.asyncio
    async def test_missing_reset_timestamp_is_reset(self, session, member, clock):
        await create_usage(session, member.id, email=2, last_reset=None)

        record = await QuotaGateway(session, clock).get_current_usage(member.id)

        assert record.email_generations_today == 0
        assert as_utc(record.email_generations_last_reset) == FIXED_NOW

    @pytest.mark.asyncio
    async def test_future_reset_timestamp_is_reset(self, session, member, clock):
        await create_usage(session, member.id, coaching=1, last_reset=FIXED_NOW + timedelta(days=3))

        record = await QuotaGateway(session, clock).get_current_usage(member.id)

        assert record.coaching_sessions_today == 0
        assert as_utc(record.email_generations_last_reset) == FIXED_NOW

    @pytest.mark.asyncio
    async def test_reset_is_idempotent_within_the_day(self, session, member):
        await create_usage(session, member.id, email=3, last_reset=FIXED_NOW - timedelta(days=2))
        gateway = QuotaGateway(session, lambda: FIXED_NOW)

        first = await gateway.get_current_usage(member.id)
        first_reset = as_utc(first.email_generations_last_reset)

        later = QuotaGateway(session, lambda: FIXED_NOW + timedelta(minutes=5))
        second = await later.get_current_usage(member.id)

        assert second.email_generations_today == 0
        assert as_utc(second.email_generations_last_reset) == first_reset

    @pytest.mark.asyncio
    async def test_increment_after_reset_survives_next_read(self, session, member, clock):
        await create_usage(session, member.id, email=3, last_reset=FIXED_NOW - timedelta(days=2))
        gateway = QuotaGateway(session, clock)

        await gateway.get_current_usage(member.id)
        await gateway.ledger.increment(member.id, "email")
        record = await gateway.get_current_usage(member.id)

        assert record.email_generations_today == 1

    @pytest.mark.asyncio
    async def test_losing_reset_race_does_not_wipe_increment(
        self, session, member, clock, monkeypatch
    ):
        """A reader that saw the record as stale must not reset it after another reader did."""
        await create_usage(session, member.id, email=3, last_reset=FIXED_NOW - timedelta(days=2))
        gateway = QuotaGateway(session, clock)
        await gateway.get_current_usage(member.id)
        await gateway.ledger.increment(member.id, "email")

        # The losing reader decided "stale" from its earlier snapshot.
        monkeypatch.setattr(quota_gateway, "is_stale", lambda last_reset, now: True)
        record = await gateway.get_current_usage(member.id)

        assert record.email_generations_today == 1
