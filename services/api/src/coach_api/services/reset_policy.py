"""Daily reset policy for usage counters.

A record is *fresh* when its last reset falls on the server's current local
calendar day and *stale* otherwise. There is no background sweep: the quota
gateway checks staleness whenever it reads a record for enforcement.
"""

from datetime import datetime, time, timedelta, timezone

from coach_shared.db.models import as_utc


def local_day_bounds(now: datetime) -> tuple[datetime, datetime]:
    """Return the UTC instants where the local calendar day of ``now`` starts and ends.

    The end bound is exclusive. Both are aware UTC datetimes suitable for
    comparison against stored timestamps.
    """
    local_now = as_utc(now).astimezone()
    start = datetime.combine(local_now.date(), time.min)
    end = datetime.combine(local_now.date() + timedelta(days=1), time.min)
    return (
        start.astimezone().astimezone(timezone.utc),
        end.astimezone().astimezone(timezone.utc),
    )


def is_stale(last_reset: datetime | None, now: datetime) -> bool:
    """Whether a record last reset at ``last_reset`` needs the daily reset.

    A missing timestamp is stale. Any local date other than today's, earlier
    or later, is stale.
    """
    if last_reset is None:
        return True
    day_start, day_end = local_day_bounds(now)
    last_reset = as_utc(last_reset)
    return not (day_start <= last_reset < day_end)
