from __future__ import annotations

import logging
import math
from datetime import date, datetime
from typing import Callable, List, Optional, Sequence

from ..attendance.model import AttendanceRecord, DisplayRecord
from ..attendance.repository import AttendanceRepository
from ..attendance.service import SessionTracker
from ..breaks.service import BreakLedger
from ..common.datetime_utils import now_local, to_local
from ..common.workdate import is_before_rollover, resolve_work_date
from ..core.constants import REQUIRED_WORKING_MINUTES
from ..core.enums import AttendanceStatus
from ..core.exceptions import AuthError, NetworkError, ValidationError
from ..overtime.service import OvertimeDebtLedger
from ..users.model import SessionContext
from .calculator.base import WorkingTimeCalculator
from .calculator.standard_calculator import StandardWorkingTimeCalculator
from .model import AttendanceStats, WorkingHoursSummary

logger = logging.getLogger(__name__)

NON_WORKING_STATUSES = (AttendanceStatus.OFF, AttendanceStatus.PENDING)


def _clock(value: Optional[datetime]) -> str:
    return value.strftime("%I:%M %p") if value else "-"


def compute_stats(records: Sequence[AttendanceRecord]) -> AttendanceStats:
    present = sum(1 for r in records if r.status == AttendanceStatus.PRESENT)
    late = sum(1 for r in records if r.status == AttendanceStatus.LATE)
    absent = sum(1 for r in records if r.status == AttendanceStatus.ABSENT)
    working_days = sum(1 for r in records if r.status not in NON_WORKING_STATUSES)

    percentage = 0
    if working_days > 0:
        percentage = math.floor(100 * (present + late) / working_days + 0.5)

    return AttendanceStats(
        present=present,
        late=late,
        absent=absent,
        working_days=working_days,
        attendance_percentage=percentage,
    )


class AttendanceAggregator:
    """Display-ready day and month figures from history plus the live session."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        session: SessionTracker,
        *,
        breaks: Optional[BreakLedger] = None,
        debt_ledger: Optional[OvertimeDebtLedger] = None,
        calculator: Optional[WorkingTimeCalculator] = None,
        required_minutes: int = REQUIRED_WORKING_MINUTES,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._session = session
        self._breaks = breaks
        self._debt = debt_ledger
        self._calculator = calculator or StandardWorkingTimeCalculator()
        self._required_minutes = int(required_minutes)
        self._clock = clock
        self._records: List[AttendanceRecord] = []

    @property
    def records(self) -> List[AttendanceRecord]:
        return list(self._records)

    def set_records(self, records: Sequence[AttendanceRecord]) -> None:
        self._records = sorted(records, key=lambda r: r.work_date)

    def load_month(self, context: SessionContext, *, year: int, month: int) -> List[AttendanceRecord]:
        """Historical records; on failure the records already held are kept."""
        try:
            self.set_records(self._attendance.get_monthly(context, year=year, month=month))
        except (NetworkError, ValidationError, AuthError) as e:
            logger.warning("Error fetching attendance for %04d-%02d: %s", year, month, e)
        return self.records

    def _record_for(self, work_date: date) -> Optional[AttendanceRecord]:
        today = self._session.today_record
        if today is not None and today.work_date == work_date:
            return today
        for r in self._records:
            if r.work_date == work_date:
                return r
        return None

    def compute_daily_status(self, work_date: date) -> DisplayRecord:
        record = self._record_for(work_date)
        if record is not None:
            if record.is_open:
                remarks = record.remarks or "Active session"
                hours = self._session.state.total_working_minutes if self._session.state.checked_in else 0
            else:
                remarks = record.remarks or ("Checked out" if record.check_out_time else "-")
                hours = self._calculator.worked_minutes(record)
            return DisplayRecord(
                work_date=work_date,
                status=record.status,
                check_in=_clock(record.check_in_time),
                check_out=_clock(record.check_out_time),
                hours=f"{hours / 60:.1f}",
                remarks=remarks,
                source="record",
            )

        state = self._session.state
        if state.check_in_time is not None and resolve_work_date(state.check_in_time) == work_date:
            return DisplayRecord(
                work_date=work_date,
                status=state.status or AttendanceStatus.PRESENT,
                check_in=_clock(state.check_in_time),
                check_out=_clock(state.check_out_time),
                hours=f"{state.total_working_minutes / 60:.1f}",
                remarks="Currently working" if state.checked_in else "Checked out",
                source="session",
            )

        return DisplayRecord(
            work_date=work_date,
            status=None,
            check_in="-",
            check_out="-",
            hours="0.0",
            remarks="Not Checked In",
            source="placeholder",
        )

    def compute_stats(self, records: Optional[Sequence[AttendanceRecord]] = None) -> AttendanceStats:
        return compute_stats(self._records if records is None else records)

    def compute_working_hours_summary(self, *, now: Optional[datetime] = None) -> WorkingHoursSummary:
        now = to_local(now or self._clock())
        state = self._session.state

        if state.checked_in:
            net = gross = float(state.total_working_minutes)
        else:
            record = self._record_for(resolve_work_date(now))
            net = self._calculator.worked_minutes(record) if record else 0.0
            gross = self._calculator.gross_minutes(record) if record else 0.0

        total_break = exceeded_break = allowed_break = 0.0
        if self._breaks is not None:
            summary = self._breaks.summary()
            total_break = summary.total_minutes
            exceeded_break = summary.exceeded_minutes
            allowed_break = summary.allowed_minutes

        net_working = max(0.0, net - allowed_break)
        net_debt = self._debt.net_debt_minutes if self._debt is not None else 0

        # Overtime only accrues once the night shift is over.
        overtime_required = 0.0
        if not is_before_rollover(now):
            overtime_required = max(0.0, self._required_minutes - net_working + net_debt)

        efficiency = round(max(0.0, net_working / gross * 100), 1) if gross > 0 else 0.0

        return WorkingHoursSummary(
            total_break_minutes=total_break,
            exceeded_break_minutes=exceeded_break,
            net_working_minutes=net_working,
            gross_working_minutes=gross,
            efficiency=efficiency,
            overtime_required_minutes=overtime_required,
            required_working_minutes=self._required_minutes,
        )

    def break_minutes_for(self, records: Sequence[AttendanceRecord]) -> float:
        return sum(r.total_break_minutes for r in records)

    def today_break_minutes(self, *, now: Optional[datetime] = None) -> float:
        record = self._record_for(resolve_work_date(to_local(now or self._clock())))
        if record is not None and record.total_break_minutes:
            return record.total_break_minutes
        return self._breaks.total_break_minutes() if self._breaks is not None else 0.0

    def month_break_minutes(self) -> float:
        if not self._records:
            return self._breaks.total_break_minutes() if self._breaks is not None else 0.0
        return self.break_minutes_for(self._records)
