"""Departure time used for all route matrix requests."""

from datetime import datetime, time, timedelta
from typing import Optional

from models.constants import DEPARTURE_HOUR, DEPARTURE_MINUTE


def next_monday_morning_datetime(now: Optional[datetime] = None) -> datetime:
    """
    Return next Monday at 08:00 local time.

    If ``now`` is a Monday the following Monday is returned, never the
    current day. Naive datetimes (and the default) are interpreted in the
    system timezone, with the offset in effect on the target Monday. Aware
    datetimes keep their tzinfo; a zoneinfo zone applies its own rules on
    the target date.

    Args:
        now: Reference time (default: current local time)

    Returns:
        Timezone-aware datetime
    """
    if now is None:
        now = datetime.now()

    # Monday is 0, so a Monday advances a full week
    days_ahead = 7 - now.weekday()
    target_date = now.date() + timedelta(days=days_ahead)
    morning = time(DEPARTURE_HOUR, DEPARTURE_MINUTE)

    if now.tzinfo is None:
        # Local offset looked up for the Monday itself, not for today
        return datetime.combine(target_date, morning).astimezone()
    return datetime.combine(target_date, morning, tzinfo=now.tzinfo)


def next_monday_morning(now: Optional[datetime] = None) -> str:
    """Next Monday 08:00 local as an RFC 3339 timestamp."""
    return next_monday_morning_datetime(now).isoformat(timespec="seconds")
