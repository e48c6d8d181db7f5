"""Unit constants, rounding and timestamp helpers shared by the planner."""

import math
from datetime import datetime, timezone
from typing import Union

KCAL_PER_G_CARB = 4.0
KCAL_PER_G_PROTEIN = 4.0
KCAL_PER_G_FAT = 9.0

SECONDS_PER_HOUR = 3600.0
HOURS_PER_DAY = 24.0

# Watt-hours to kilojoules (1 Wh = 3600 J)
KJ_PER_WATT_HOUR = 3.6

LB_PER_KG = 2.2046226218


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves toward positive infinity.

    Python's built-in round() uses banker's rounding; exported figures need
    the half-up behaviour so 0.5 always rounds to 1. Non-finite values are
    returned unchanged.
    """
    if not math.isfinite(value):
        return value
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def hours_between(start: datetime, end: datetime) -> float:
    """Hours from start to end, floored at zero."""
    return max(0.0, (end - start).total_seconds() / SECONDS_PER_HOUR)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    """Parse an ISO-8601 timestamp (``Z`` suffix allowed) into a UTC datetime."""
    if isinstance(value, datetime):
        return ensure_utc(value)
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(text))


def format_timestamp(value: datetime) -> str:
    """Format as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""
    utc = ensure_utc(value)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def date_key(value: datetime) -> str:
    """UTC calendar date as ``YYYY-MM-DD``."""
    return ensure_utc(value).strftime("%Y-%m-%d")
