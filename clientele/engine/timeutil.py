"""UTC time helpers.

Every timestamp that enters the engine is normalized to an aware UTC
datetime. Naive values are read as UTC. Day counts come from elapsed
durations, never from calendar field subtraction.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta, timezone

from clientele.core.errors import ValidationError

ONE_DAY = timedelta(days=1)


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_utc(value: object, *, field: str = "timestamp") -> datetime:
    """Coerce a datetime, date or ISO-8601 string to an aware UTC datetime.

    Raises:
        ValidationError: If the value cannot be read as a point in time.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise ValidationError(
                f"Invalid date for {field}: {value!r}", field=field, value=value
            ) from exc
    else:
        raise ValidationError(
            f"Invalid date for {field}: {value!r}", field=field, value=value
        )

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def optional_utc(value: object, *, field: str = "timestamp") -> datetime | None:
    """Like ``to_utc`` but passes None through (e.g. a client never contacted)."""
    if value is None:
        return None
    return to_utc(value, field=field)


def elapsed_days(start: datetime, now: datetime) -> int:
    """Whole days elapsed from ``start`` to ``now``, never negative."""
    return max(0, (to_utc(now) - to_utc(start)) // ONE_DAY)


def ceil_days(delta: timedelta) -> int:
    """Round a duration up to whole days (negative durations round toward zero)."""
    return math.ceil(delta / ONE_DAY)


def add_days(start: datetime, days: int) -> datetime:
    """Return a new UTC datetime ``days`` calendar days after ``start``."""
    return to_utc(start) + timedelta(days=days)
