"""
Day-key and wall-clock helpers for the daily leaderboard.

Day keys are ISO calendar dates (``YYYY-MM-DD``) in the configured timezone.
"""

from datetime import datetime
from typing import Optional, Tuple

import pytz

from valotracker.config import Config

LEGACY_DAY_FORMAT = "%a %b %d %Y"  # JavaScript Date.toDateString()


def get_timezone(timezone_name: Optional[str] = None):
    """Resolve a pytz timezone, defaulting to Config.TIMEZONE."""
    return pytz.timezone(timezone_name or Config.TIMEZONE)


def day_key_for(moment: datetime, tz=None) -> str:
    """Calendar date of ``moment`` in ``tz``. Naive datetimes are taken as UTC."""
    tz = tz or get_timezone()
    if moment.tzinfo is None:
        moment = pytz.utc.localize(moment)
    return moment.astimezone(tz).date().isoformat()


def current_day_key(tz=None) -> str:
    return day_key_for(datetime.now(pytz.utc), tz)


def parse_clock(value: str) -> Tuple[int, int]:
    """
    Parse an ``HH:MM`` wall-clock time.

    Raises:
        ValueError: If the value is not a valid 24h time
    """
    try:
        hour_text, minute_text = value.strip().split(':')
        hour, minute = int(hour_text), int(minute_text)
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid clock time '{value}'. Use HH:MM")
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError(f"Invalid clock time '{value}'. Use HH:MM")
    return hour, minute


def normalize_day_key(value: Optional[str]) -> Optional[str]:
    """
    Convert a stored day key to ISO form.

    Accepts ISO dates and the legacy ``Date.toDateString()`` format. Anything
    unrecognised becomes None, which the engine treats as a stale day.
    """
    if not value or not isinstance(value, str):
        return None
    for fmt in ("%Y-%m-%d", LEGACY_DAY_FORMAT):
        try:
            return datetime.strptime(value.strip(), fmt).date().isoformat()
        except ValueError:
            continue
    return None
