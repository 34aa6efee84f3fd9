from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AttendanceStats:
    present: int
    late: int
    absent: int
    working_days: int
    attendance_percentage: int


@dataclass(frozen=True)
class WorkingHoursSummary:
    total_break_minutes: float
    exceeded_break_minutes: float
    net_working_minutes: float
    gross_working_minutes: float
    efficiency: float
    overtime_required_minutes: float
    required_working_minutes: int
