"""
Wall-clock helpers for delivery time arithmetic.

Delivery targets are expressed in the user's local calendar, so these
helpers build datetimes by replacing clock fields on a timezone-aware
reference time rather than by adding fixed offsets.
"""

import logging
from datetime import datetime, timedelta, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)


def ensure_aware(dt: datetime, default_tz: Optional[tzinfo] = None) -> datetime:
    """
    Attach a timezone to naive datetimes.

    Args:
        dt: Datetime to normalise
        default_tz: Timezone assumed for naive values (UTC if omitted)

    Returns:
        Timezone-aware datetime
    """
    if dt.tzinfo is None:
        logger.debug(f"Naive datetime {dt.isoformat()} assumed to be in {default_tz or 'UTC'}")
        return dt.replace(tzinfo=default_tz or ZoneInfo("UTC"))
    return dt


def local_now(tz: Optional[tzinfo] = None) -> datetime:
    """Current time in the given timezone (UTC if omitted)."""
    return datetime.now(tz or ZoneInfo("UTC"))


def at_hour(reference: datetime, hour: int) -> datetime:
    """Same calendar day as `reference`, at hour:00:00 local time."""
    return reference.replace(hour=hour, minute=0, second=0, microsecond=0)


def next_day_at_hour(reference: datetime, hour: int) -> datetime:
    """The calendar day after `reference`, at hour:00:00 local time."""
    following = (reference + timedelta(days=1)).date()
    return datetime(following.year, following.month, following.day, hour, tzinfo=reference.tzinfo)

