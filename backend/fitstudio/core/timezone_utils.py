"""
Studio-local time handling.

Rules:
- Schedule dates and slot times are wall-clock times in the studio timezone
- All comparisons: UTC
"""

from datetime import date, datetime, time, timezone
import logging
from typing import Optional

import pytz

from .config import settings

logger = logging.getLogger(__name__)

FALLBACK_TIMEZONE = "Africa/Nairobi"


def get_studio_timezone(tz_str: Optional[str] = None) -> pytz.BaseTzInfo:
    """Timezone object for the studio, falling back when the name is unknown."""
    name = tz_str or settings.studio_timezone
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        logger.warning("Unknown studio timezone %s; using %s", name, FALLBACK_TIMEZONE)
        return pytz.timezone(FALLBACK_TIMEZONE)


def slot_start_utc(slot_date: date, start_time: time, tz_str: Optional[str] = None) -> datetime:
    """
    Convert a schedule date plus slot start time to an aware UTC datetime.

    Ambiguous wall times (DST fall-back) resolve to the first occurrence and
    nonexistent ones (spring-forward gap) are shifted forward, so a slot
    always has a start instant.
    """
    tz = get_studio_timezone(tz_str)
    naive_dt = datetime.combine(slot_date, start_time)  # naive on purpose for pytz.localize()
    try:
        local_dt = tz.localize(naive_dt, is_dst=None)
    except pytz.exceptions.AmbiguousTimeError:
        local_dt = tz.localize(naive_dt, is_dst=True)
    except pytz.exceptions.NonExistentTimeError:
        local_dt = tz.normalize(tz.localize(naive_dt, is_dst=False))
    return local_dt.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def hours_until(start: datetime, now: datetime) -> float:
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return (start - now).total_seconds() / 3600.0
