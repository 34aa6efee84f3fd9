"""Night-shift business date.

A shift that starts at 21:00 on day D and ends at 06:00 on D+1 belongs to
work-date D. Every component that needs "today" goes through here.
"""

from __future__ import annotations

from calendar import monthrange
from datetime import date, datetime, time, timedelta
from typing import Optional

from ..core.constants import WORK_DATE_ROLLOVER_HOUR
from .datetime_utils import now_local, parse_clock, to_local


def resolve_work_date(now: Optional[datetime] = None) -> date:
    now = to_local(now or now_local())
    if now.hour < WORK_DATE_ROLLOVER_HOUR:
        return now.date() - timedelta(days=1)
    return now.date()


def is_before_rollover(value: datetime) -> bool:
    return to_local(value).hour < WORK_DATE_ROLLOVER_HOUR


def resolve_break_start(attendance_date: date, start_clock) -> datetime:
    """Absolute start of a break reported as (attendance date, ``HH:MM:SS``).

    Early-morning clock times (00:00-05:59) are attributed to the calendar day
    before ``attendance_date``, mirroring the work-date rule.
    """
    clock: time = parse_clock(start_clock) or time(0, 0)
    day = attendance_date
    if clock.hour < WORK_DATE_ROLLOVER_HOUR:
        day = day - timedelta(days=1)
    return datetime.combine(day, clock)


def work_date_range(year: int, month: int) -> list[date]:
    days = monthrange(year, month)[1]
    return [date(year, month, d) for d in range(1, days + 1)]


def anchor_to_work_date(work_date: date, clock) -> datetime:
    """Absolute timestamp of a shift clock time recorded against ``work_date``.

    Clock times after midnight fall on the calendar day after the work-date.
    """
    value: time = parse_clock(clock) or time(0, 0)
    day = work_date
    if value.hour < WORK_DATE_ROLLOVER_HOUR:
        day = day + timedelta(days=1)
    return datetime.combine(day, value)
