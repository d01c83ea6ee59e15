"""
Voting window eligibility.

Pure functions deciding whether a group's schedule opens a voting window at a
given instant. No database access: callers pass in the creation times of the
votings that already exist for the group.
"""

from datetime import datetime, time, timedelta
from typing import Iterable, Sequence, Tuple

from django.utils import timezone

# Index matches datetime.weekday()
WEEKDAYS = (
    "MONDAY",
    "TUESDAY",
    "WEDNESDAY",
    "THURSDAY",
    "FRIDAY",
    "SATURDAY",
    "SUNDAY",
)


def weekday_of(moment: datetime) -> str:
    """Weekday name of ``moment`` in the current timezone."""
    return WEEKDAYS[timezone.localtime(moment).weekday()]


def window_bounds(
    now: datetime, voting_time: time, duration_hours: int
) -> Tuple[datetime, datetime]:
    """
    Today's voting window for a group.

    Args:
        now: Current instant (aware)
        voting_time: Time of day the window opens
        duration_hours: Window length in hours

    Returns:
        Tuple of (window_start, window_end), both aware
    """
    local_now = timezone.localtime(now)
    start = local_now.replace(
        hour=voting_time.hour,
        minute=voting_time.minute,
        second=voting_time.second,
        microsecond=0,
    )
    return start, start + timedelta(hours=duration_hours)


def is_within_window(now: datetime, voting_time: time, duration_hours: int) -> bool:
    start, end = window_bounds(now, voting_time, duration_hours)
    return start <= now <= end


def is_eligible(
    now: datetime,
    voting_days: Sequence[str],
    voting_time: time,
    duration_hours: int,
    existing_created_ats: Iterable[datetime] = (),
) -> bool:
    """
    Whether a new voting must be opened for a group at ``now``.

    True only when today is a voting day, ``now`` falls inside today's window
    and none of ``existing_created_ats`` falls inside that same window.
    """
    if weekday_of(now) not in voting_days:
        return False

    if not is_within_window(now, voting_time, duration_hours):
        return False

    start, end = window_bounds(now, voting_time, duration_hours)
    return not any(start <= created_at <= end for created_at in existing_created_ats)
