from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import List, Optional

from ..common.datetime_utils import minutes_between
from ..core.enums import BreakCategory
from ..scheduling.scheduler import Timer


@dataclass(frozen=True)
class BreakRule:
    category: BreakCategory
    name: str
    limit_minutes: int


@dataclass
class BreakEntry:
    """Live state of one break category for the current work-date.

    ``exceeded_duration`` and ``debt_entry_id`` belong to the running
    occurrence only; they are what keeps an overage from being charged twice.
    ``offset_minutes`` carries the server-reported time a restored break is
    ahead of its live span.
    """

    category: BreakCategory
    name: str
    limit_minutes: int
    active: bool = False
    start_time: Optional[datetime] = None
    accumulated_minutes: float = 0
    exceeded_minutes: float = 0
    occurrence_count: int = 0
    exceeded_duration: float = 0
    debt_entry_id: Optional[int] = None
    restored_minutes: Optional[float] = None
    offset_minutes: float = 0
    break_id: Optional[str] = None
    timers: List[Timer] = field(default_factory=list, repr=False)

    def current_duration(self, now: datetime) -> float:
        if not self.active or self.start_time is None:
            return 0
        return max(0.0, minutes_between(self.start_time, now) + self.offset_minutes)


@dataclass(frozen=True)
class OngoingBreak:
    """An open break as reported by the backend after a reload."""

    category: BreakCategory
    start_clock: time
    attendance_date: Optional[date]
    duration_minutes: float = 0
    break_id: Optional[str] = None


@dataclass(frozen=True)
class CompletedBreak:
    category: BreakCategory
    duration_minutes: float
    start_clock: Optional[time] = None
    end_clock: Optional[time] = None
    break_id: Optional[str] = None


@dataclass(frozen=True)
class BreakOutcome:
    category: BreakCategory
    duration_minutes: float
    exceeded_minutes: float


@dataclass(frozen=True)
class BreakSummary:
    total_minutes: float
    exceeded_minutes: float

    @property
    def allowed_minutes(self) -> float:
        return max(0.0, self.total_minutes - self.exceeded_minutes)
