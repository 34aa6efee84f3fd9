from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Mapping, Optional

from ..core.enums import AttendanceStatus, BreakCategory
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one employee's attendance for one work-date."""

    employee_id: str
    work_date: date
    status: AttendanceStatus
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    net_working_minutes: float = 0
    gross_working_minutes: float = 0
    late_by_minutes: float = 0
    overtime_minutes: float = 0
    break_counts: Mapping[BreakCategory, int] = field(default_factory=dict)
    break_minutes: Mapping[BreakCategory, float] = field(default_factory=dict)
    remarks: Optional[str] = None

    def __post_init__(self):
        if self.check_out_time is not None:
            if self.check_in_time is None:
                raise ValidationError(f"Record for {self.work_date} has a check-out without a check-in")
            if self.check_out_time < self.check_in_time:
                raise ValidationError(f"Record for {self.work_date} checks out before it checks in")

    @property
    def is_open(self) -> bool:
        return self.check_in_time is not None and self.check_out_time is None

    @property
    def total_break_minutes(self) -> float:
        return sum(self.break_minutes.values())


@dataclass(frozen=True)
class SessionState:
    """In-memory view of the active session, replaced wholesale on reconciliation."""

    checked_in: bool = False
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    total_working_minutes: float = 0
    is_on_break: bool = False
    status: Optional[AttendanceStatus] = None
    last_update: Optional[datetime] = None

    def __post_init__(self):
        if self.is_on_break and not self.checked_in:
            raise ValidationError("A break requires an active session")


@dataclass(frozen=True)
class CheckInResult:
    timestamp: datetime
    is_late: bool
    late_by_minutes: int = 0
    already_checked_in: bool = False


@dataclass(frozen=True)
class CheckOutData:
    """What the backend reports back for a check-out."""

    net_working_minutes: float
    check_out_time: Optional[datetime] = None


@dataclass(frozen=True)
class CheckOutResult:
    timestamp: datetime
    net_working_minutes: float


@dataclass(frozen=True)
class DisplayRecord:
    """Read-model for the dashboard row of one work-date."""

    work_date: date
    status: Optional[AttendanceStatus]
    check_in: str
    check_out: str
    hours: str
    remarks: str
    source: str
