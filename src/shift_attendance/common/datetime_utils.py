from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Optional

from ..core.constants import UTC_OFFSET_HOURS
from ..core.exceptions import ValidationError

# Every wall-clock value exchanged with the backend is in this fixed offset.
SHIFT_TZ = timezone(timedelta(hours=UTC_OFFSET_HOURS))


def now_local() -> datetime:
    """Current wall-clock time in the shift timezone (naive).

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(SHIFT_TZ).replace(tzinfo=None)


def to_local(value: datetime) -> datetime:
    """Aware datetimes are converted to UTC+5; naive ones are taken as already local."""
    if value.tzinfo is None:
        return value
    return value.astimezone(SHIFT_TZ).replace(tzinfo=None)


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def normalize_date(value: Any) -> Optional[date]:
    """Collapse the backend's date shapes into a plain date.

    The API returns either ``2025-06-10`` or ``2025-06-10T00:00:00.000Z``; both
    mean the same work-date, so the time part is dropped rather than converted.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return parse_iso_date(value.strip()[:10])
        except ValueError:
            raise ValidationError(f"Invalid date: {value!r}")
    raise ValidationError(f"Unsupported date value: {value!r}")


def parse_clock(value: Any) -> Optional[time]:
    """Parse ``HH:MM`` / ``HH:MM:SS`` wall-clock strings."""
    if value is None or value == "":
        return None
    if isinstance(value, time):
        return value
    if isinstance(value, datetime):
        return to_local(value).time()
    if not isinstance(value, str):
        raise ValidationError(f"Unsupported time value: {value!r}")

    parts = value.strip().split(":")
    if len(parts) < 2:
        raise ValidationError(f"Invalid time string: {value!r}")
    try:
        hours = int(parts[0])
        minutes = int(parts[1])
        seconds = int(float(parts[2])) if len(parts) >= 3 and parts[2] else 0
        return time(hour=hours, minute=minutes, second=seconds)
    except ValueError:
        raise ValidationError(f"Invalid time string: {value!r}")


def parse_timestamp(value: Any, *, on_date: Optional[date] = None) -> Optional[datetime]:
    """Parse a backend timestamp into a naive UTC+5 datetime.

    Accepts full ISO timestamps (converted to UTC+5 when they carry an offset)
    and bare ``HH:MM:SS`` strings, which need ``on_date`` to be anchored.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return to_local(value)
    if isinstance(value, str) and ("T" in value or len(value.strip()) > 8 and "-" in value):
        text = value.strip().replace("Z", "+00:00")
        try:
            return to_local(datetime.fromisoformat(text))
        except ValueError:
            raise ValidationError(f"Invalid timestamp: {value!r}")

    clock = parse_clock(value)
    if on_date is None:
        raise ValidationError(f"Time {value!r} has no date to anchor to")
    return datetime.combine(on_date, clock)


def format_clock(value: datetime) -> str:
    return to_local(value).strftime("%H:%M:%S")


def minutes_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 60
