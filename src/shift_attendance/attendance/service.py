from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from ..common.datetime_utils import minutes_between, now_local, to_local
from ..common.workdate import resolve_work_date
from ..core.constants import SESSION_ALERT_MINUTES, TICK_UPDATE_THRESHOLD_MINUTES
from ..core.enums import AttendanceStatus
from ..core.exceptions import (
    AuthError,
    CheckInFailed,
    CheckOutFailed,
    NetworkError,
    NotCheckedInError,
    OnBreakError,
    RequestInFlightError,
    ValidationError,
)
from ..overtime.service import OvertimeDebtLedger
from ..scheduling.scheduler import TickScheduler
from ..users.model import SessionContext
from ..users.service import require_authenticated
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord, CheckInResult, CheckOutResult, SessionState
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class SessionTracker:
    """Check-in/check-out state of one employee session.

    The backend record is the source of truth: every write applies an
    optimistic record first and then replaces it wholesale with what the
    backend returns.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        *,
        debt_ledger: Optional[OvertimeDebtLedger] = None,
        strategy_factory: Optional[AttendanceStrategyFactory] = None,
        scheduler: Optional[TickScheduler] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._debt = debt_ledger
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._clock = clock
        self._state = SessionState()
        self._today_record: Optional[AttendanceRecord] = None
        self._in_flight = False
        self._long_session_alerted = False

        self.scheduler = scheduler or TickScheduler()
        self.scheduler.on_tick(self.tick)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def today_record(self) -> Optional[AttendanceRecord]:
        return self._today_record

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def can_check_in(self) -> bool:
        return not self._state.checked_in and not self._in_flight

    def can_check_out(self) -> bool:
        if self._state.is_on_break:
            return False
        if not self._state.checked_in:
            return False
        return not self._in_flight

    def set_on_break(self, on_break: bool) -> None:
        if on_break and not self._state.checked_in:
            raise NotCheckedInError("Check in before starting a break")
        self._state = replace(self._state, is_on_break=bool(on_break))

    # -- writes ------------------------------------------------------------

    def check_in(self, context: SessionContext, *, now: Optional[datetime] = None) -> CheckInResult:
        require_authenticated(context)

        if self._state.checked_in and self._state.check_in_time is not None:
            logger.info("Employee %s already checked in at %s", context.employee_id, self._state.check_in_time)
            return CheckInResult(
                timestamp=self._state.check_in_time,
                is_late=self._state.status == AttendanceStatus.LATE,
                late_by_minutes=int(self._today_record.late_by_minutes) if self._today_record else 0,
                already_checked_in=True,
            )
        if self._in_flight:
            raise RequestInFlightError("A check-in or check-out request is already in progress")

        now = to_local(now or self._clock())
        decision = self._factory.for_checkin(now=now).decide_checkin(now=now, cutoff=self._factory.cutoff_for(now))

        previous = (self._state, self._today_record)
        self._today_record = AttendanceRecord(
            employee_id=context.employee_id,
            work_date=resolve_work_date(now),
            status=decision.status,
            check_in_time=now,
            late_by_minutes=decision.late_by_minutes,
            remarks=decision.note,
        )
        self._state = SessionState(
            checked_in=True,
            check_in_time=now,
            status=decision.status,
            last_update=now,
        )
        self._long_session_alerted = False

        self._in_flight = True
        try:
            self._attendance.check_in(context)
        except (NetworkError, ValidationError) as e:
            self._state, self._today_record = previous
            logger.error("Check-in failed for %s: %s", context.employee_id, e)
            raise CheckInFailed(str(e), status_code=getattr(e, "status_code", None)) from e
        except AuthError:
            self._state, self._today_record = previous
            raise
        finally:
            self._in_flight = False

        if self._debt is not None:
            self._debt.record_late_arrival(now)

        logger.info("Employee %s checked in at %s (%s)", context.employee_id, now, decision.status.value)
        self.refresh(context, now=now)
        return CheckInResult(
            timestamp=now,
            is_late=decision.status == AttendanceStatus.LATE,
            late_by_minutes=decision.late_by_minutes,
        )

    def check_out(self, context: SessionContext, *, now: Optional[datetime] = None) -> CheckOutResult:
        require_authenticated(context)

        if not self._state.checked_in:
            raise NotCheckedInError("You are not checked in")
        if self._state.is_on_break:
            raise OnBreakError("End your break before checking out")
        if self._in_flight:
            raise RequestInFlightError("A check-in or check-out request is already in progress")

        now = to_local(now or self._clock())
        self._in_flight = True
        try:
            data = self._attendance.check_out(context)
        except (NetworkError, ValidationError) as e:
            logger.error("Check-out failed for %s: %s", context.employee_id, e)
            raise CheckOutFailed(str(e), status_code=getattr(e, "status_code", None)) from e
        finally:
            self._in_flight = False

        checked_out_at = data.check_out_time or now
        if self._state.check_in_time and checked_out_at < self._state.check_in_time:
            checked_out_at = now

        self._state = replace(
            self._state,
            checked_in=False,
            check_out_time=checked_out_at,
            total_working_minutes=data.net_working_minutes,
            is_on_break=False,
            last_update=now,
        )
        if self._today_record is not None and self._today_record.check_in_time is not None:
            self._today_record = replace(
                self._today_record,
                check_out_time=max(checked_out_at, self._today_record.check_in_time),
                net_working_minutes=data.net_working_minutes,
            )

        logger.info("Employee %s checked out, net %.1f minutes", context.employee_id, data.net_working_minutes)
        self.refresh(context, now=now)
        return CheckOutResult(timestamp=checked_out_at, net_working_minutes=data.net_working_minutes)

    # -- reconciliation ----------------------------------------------------

    def refresh(self, context: SessionContext, *, now: Optional[datetime] = None) -> SessionState:
        """Replace local state with the backend's record for today.

        Best-effort: a failed fetch keeps whatever state is already held.
        """
        try:
            record = self._attendance.get_today(context)
        except (NetworkError, ValidationError, AuthError) as e:
            logger.warning("Could not refresh today's attendance for %s: %s", context.employee_id, e)
            return self._state

        if record is not None:
            self.apply_record(record, now=now)
        return self._state

    def apply_record(self, record: AttendanceRecord, *, now: Optional[datetime] = None) -> SessionState:
        now = to_local(now or self._clock())
        checked_in = record.is_open
        if checked_in:
            total = max(0.0, minutes_between(record.check_in_time, now))
        else:
            total = float(record.net_working_minutes)

        self._today_record = record
        self._state = SessionState(
            checked_in=checked_in,
            check_in_time=record.check_in_time,
            check_out_time=record.check_out_time,
            total_working_minutes=total,
            is_on_break=self._state.is_on_break and checked_in,
            status=record.status,
            last_update=now,
        )
        return self._state

    # -- timers ------------------------------------------------------------

    def tick(self, now: datetime) -> bool:
        """Recompute elapsed working minutes; True when the state changed."""
        state = self._state
        if not state.checked_in or state.check_in_time is None or state.is_on_break:
            return False

        now = to_local(now)
        elapsed = minutes_between(state.check_in_time, now)

        if elapsed >= SESSION_ALERT_MINUTES and not self._long_session_alerted:
            self._long_session_alerted = True
            logger.warning(
                "Session open for %.1f hours since %s; check-out was probably missed",
                elapsed / 60,
                state.check_in_time,
            )

        if abs(elapsed - state.total_working_minutes) > TICK_UPDATE_THRESHOLD_MINUTES:
            self._state = replace(state, total_working_minutes=elapsed, last_update=now)
            return True
        return False
