from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Callable, Optional

from .api.connection import ApiConfig, ApiConnection
from .attendance.factory import AttendanceStrategyFactory
from .attendance.http_attendance_repository import HttpAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import SessionTracker
from .breaks.http_break_repository import HttpBreakRepository
from .breaks.repository import BreakRepository
from .breaks.service import BreakLedger
from .common.datetime_utils import now_local
from .core.constants import (
    BREAK_REFRESH_SECONDS,
    DEBT_EXPECTED_START,
    DEBT_GRACE_MINUTES,
    REQUIRED_WORKING_MINUTES,
    STATUS_GRACE_CUTOFF,
)
from .overtime.service import OvertimeDebtLedger
from .scheduling.scheduler import TickScheduler
from .stats.service import AttendanceAggregator
from .users.model import SessionContext


@dataclass(frozen=True)
class Container:
    conn: Optional[ApiConnection]

    attendance_repo: AttendanceRepository
    breaks_repo: BreakRepository

    scheduler: TickScheduler
    debt_ledger: OvertimeDebtLedger
    session_tracker: SessionTracker
    break_ledger: BreakLedger
    aggregator: AttendanceAggregator

    context: SessionContext
    lock: threading.RLock


def build_engine(
    *,
    attendance_repo: AttendanceRepository,
    breaks_repo: BreakRepository,
    context: SessionContext,
    conn: Optional[ApiConnection] = None,
    grace_cutoff: time = STATUS_GRACE_CUTOFF,
    debt_expected_start: Optional[time] = DEBT_EXPECTED_START,
    debt_grace_minutes: int = DEBT_GRACE_MINUTES,
    required_minutes: int = REQUIRED_WORKING_MINUTES,
    refresh_seconds: int = BREAK_REFRESH_SECONDS,
    clock: Callable[[], datetime] = now_local,
) -> Container:
    scheduler = TickScheduler(refresh_every=timedelta(seconds=refresh_seconds))
    debt_ledger = OvertimeDebtLedger(
        expected_start=debt_expected_start,
        grace_minutes=debt_grace_minutes,
        clock=clock,
    )
    session_tracker = SessionTracker(
        attendance_repo,
        debt_ledger=debt_ledger,
        strategy_factory=AttendanceStrategyFactory(grace_cutoff=grace_cutoff),
        scheduler=scheduler,
        clock=clock,
    )
    break_ledger = BreakLedger(
        breaks_repo,
        debt_ledger=debt_ledger,
        session=session_tracker,
        scheduler=scheduler,
        clock=clock,
    )
    aggregator = AttendanceAggregator(
        attendance_repo,
        session_tracker,
        breaks=break_ledger,
        debt_ledger=debt_ledger,
        required_minutes=required_minutes,
        clock=clock,
    )

    return Container(
        conn=conn,
        attendance_repo=attendance_repo,
        breaks_repo=breaks_repo,
        scheduler=scheduler,
        debt_ledger=debt_ledger,
        session_tracker=session_tracker,
        break_ledger=break_ledger,
        aggregator=aggregator,
        context=context,
        lock=threading.RLock(),
    )


def build_container(*, api_config: dict, context: SessionContext, settings=None) -> Container:
    config = ApiConfig(
        base_url=str(api_config["base_url"]),
        version=str(api_config.get("version", "v1")),
        timeout=float(api_config.get("timeout", 10)),
    )
    conn = ApiConnection.get_instance(config)

    return build_engine(
        attendance_repo=HttpAttendanceRepository(conn),
        breaks_repo=HttpBreakRepository(conn),
        context=context,
        conn=conn,
        grace_cutoff=getattr(settings, "STATUS_GRACE_CUTOFF", STATUS_GRACE_CUTOFF),
        debt_expected_start=getattr(settings, "DEBT_EXPECTED_START", DEBT_EXPECTED_START),
        debt_grace_minutes=int(getattr(settings, "DEBT_GRACE_MINUTES", DEBT_GRACE_MINUTES)),
        required_minutes=int(getattr(settings, "REQUIRED_WORKING_MINUTES", REQUIRED_WORKING_MINUTES)),
        refresh_seconds=int(getattr(settings, "BREAK_REFRESH_SECONDS", BREAK_REFRESH_SECONDS)),
    )


def start_engine(container: Container, *, now: Optional[datetime] = None) -> None:
    """Reload sequence: today's record, break rules and open breaks, then the 30s refresh."""
    context = container.context
    session = container.session_tracker
    breaks = container.break_ledger

    with container.lock:
        session.refresh(context, now=now)
        breaks.load_rules(context, now=now)
        breaks.refresh_today_breaks(context)
        if session.today_record is not None:
            breaks.sync_from_record(session.today_record)

    def _refresh_today(tick_now: datetime) -> None:
        session.refresh(context, now=tick_now)
        breaks.refresh_today_breaks(context)

    container.scheduler.on_refresh(_refresh_today)
