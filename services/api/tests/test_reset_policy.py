"""Unit tests for the daily reset policy."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from coach_api.services.reset_policy import is_stale, local_day_bounds

from helpers import FIXED_NOW


@pytest.mark.unit
class TestLocalDayBounds:
    """Tests for the local calendar day window."""

    def test_now_falls_inside_its_day(self):
        start, end = local_day_bounds(FIXED_NOW)
        assert start <= FIXED_NOW < end

    def test_bounds_are_aware_utc(self):
        start, end = local_day_bounds(FIXED_NOW)
        assert start.tzinfo is not None
        assert start.utcoffset() == timedelta(0)
        assert end.utcoffset() == timedelta(0)

    def test_window_is_about_one_day(self):
        start, end = local_day_bounds(FIXED_NOW)
        # 23h or 25h across a daylight saving change
        assert timedelta(hours=23) <= end - start <= timedelta(hours=25)

    def test_naive_now_is_read_as_utc(self):
        naive = FIXED_NOW.replace(tzinfo=None)
        assert local_day_bounds(naive) == local_day_bounds(FIXED_NOW)


@pytest.mark.unit
class TestIsStale:
    """Tests for staleness of a record's last reset."""

    def test_missing_reset_is_stale(self):
        assert is_stale(None, FIXED_NOW) is True

    def test_reset_now_is_fresh(self):
        assert is_stale(FIXED_NOW, FIXED_NOW) is False

    def test_start_of_day_is_fresh(self):
        start, _ = local_day_bounds(FIXED_NOW)
        assert is_stale(start, FIXED_NOW) is False

    def test_last_instant_of_day_is_fresh(self):
        _, end = local_day_bounds(FIXED_NOW)
        assert is_stale(end - timedelta(microseconds=1), FIXED_NOW) is False

    def test_previous_day_is_stale(self):
        start, _ = local_day_bounds(FIXED_NOW)
        assert is_stale(start - timedelta(microseconds=1), FIXED_NOW) is True

    def test_days_ago_is_stale(self):
        assert is_stale(FIXED_NOW - timedelta(days=2), FIXED_NOW) is True

    def test_future_day_is_stale(self):
        _, end = local_day_bounds(FIXED_NOW)
        assert is_stale(end, FIXED_NOW) is True

    def test_naive_reset_is_read_as_utc(self):
        assert is_stale(FIXED_NOW.replace(tzinfo=None), FIXED_NOW) is False

    def test_other_timezone_same_instant_is_fresh(self):
        shifted = FIXED_NOW.astimezone(timezone(timedelta(hours=-7)))
        assert is_stale(shifted, datetime(2026, 3, 10, 12, 0, tzinfo=UTC)) is False
