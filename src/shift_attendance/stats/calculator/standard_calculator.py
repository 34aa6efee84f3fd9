from __future__ import annotations

from .base import WorkingTimeCalculator
from ...attendance.model import AttendanceRecord


class StandardWorkingTimeCalculator(WorkingTimeCalculator):
    """Backend totals when present, else (out - in) - breaks, not below 0."""

    def gross_minutes(self, record: AttendanceRecord) -> float:
        if record.gross_working_minutes:
            return float(record.gross_working_minutes)
        if not record.check_in_time or not record.check_out_time:
            return 0
        return max((record.check_out_time - record.check_in_time).total_seconds() / 60, 0)

    def worked_minutes(self, record: AttendanceRecord) -> float:
        if record.net_working_minutes:
            return float(record.net_working_minutes)
        minutes = self.gross_minutes(record) - record.total_break_minutes
        return max(minutes, 0)
