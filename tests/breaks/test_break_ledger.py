from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import List, Optional

import pytest

from shift_attendance.attendance.model import AttendanceRecord
from shift_attendance.attendance.service import SessionTracker
from shift_attendance.breaks.model import BreakRule, CompletedBreak, OngoingBreak
from shift_attendance.breaks.service import BreakLedger
from shift_attendance.core.enums import AttendanceStatus, BreakCategory, DebtType
from shift_attendance.core.exceptions import BreakEndFailed, BreakStartFailed, NetworkError, NotCheckedInError, ValidationError
from shift_attendance.overtime.service import OvertimeDebtLedger


class InMemoryBreaks:
    def __init__(self):
        self.rules: List[BreakRule] = []
        self.ongoing: List[OngoingBreak] = []
        self.today: List[CompletedBreak] = []
        self.started = []
        self.progress = []
        self.ended = []
        self.fail_rules: Optional[Exception] = None
        self.fail_start: Optional[Exception] = None
        self.fail_end: Optional[Exception] = None

    def get_rules(self):
        if self.fail_rules:
            raise self.fail_rules
        return self.rules

    def start_break(self, context, *, category, start_time, reason):
        if self.fail_start:
            raise self.fail_start
        self.started.append((category, start_time, reason))
        return f"brk-{len(self.started)}"

    def update_progress(self, context, *, category, current_time, duration_minutes):
        self.progress.append((category, duration_minutes))

    def end_break(self, context, *, category, end_time, duration_minutes):
        if self.fail_end:
            raise self.fail_end
        self.ended.append((category, end_time, duration_minutes))

    def get_ongoing(self, context):
        return self.ongoing

    def get_today_breaks(self, context):
        return self.today


class NoAttendance:
    def get_today(self, context):
        return None


class RecordingNotifier:
    def __init__(self):
        self.warnings = []
        self.limits = []

    def break_warning(self, entry):
        self.warnings.append(entry.category)

    def break_limit_reached(self, entry):
        self.limits.append(entry.category)


def _open_session(clock, check_in: datetime) -> SessionTracker:
    session = SessionTracker(NoAttendance(), clock=clock)
    session.apply_record(
        AttendanceRecord(
            employee_id="EMP-001",
            work_date=date(2025, 6, 10),
            status=AttendanceStatus.PRESENT,
            check_in_time=check_in,
        ),
        now=check_in,
    )
    return session


@pytest.fixture
def repo():
    return InMemoryBreaks()


@pytest.fixture
def debt():
    return OvertimeDebtLedger(expected_start=None)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def ledger(repo, debt, notifier, clock, fixed_now):
    session = _open_session(clock, fixed_now - timedelta(hours=1))
    return BreakLedger(repo, debt_ledger=debt, session=session, notifier=notifier, clock=clock)


def test_default_rules_are_configured(ledger):
    limits = {c: e.limit_minutes for c, e in ledger.entries.items()}
    assert limits == {
        BreakCategory.SMOKE: 2,
        BreakCategory.DINNER: 40,
        BreakCategory.WASHROOM: 10,
        BreakCategory.PRAYER: 10,
    }


def test_rules_fetch_failure_keeps_defaults(ledger, repo, context):
    repo.fail_rules = NetworkError("rules down")

    rules = ledger.load_rules(context)

    assert {r.category for r in rules} == set(BreakCategory)
    assert ledger.entry("dinner").limit_minutes == 40


def test_fetched_rules_override_limits(ledger, repo, context):
    repo.rules = [BreakRule(category=BreakCategory.DINNER, name="Dinner", limit_minutes=30)]

    ledger.load_rules(context)

    assert ledger.entry(BreakCategory.DINNER).limit_minutes == 30
    assert ledger.entry(BreakCategory.SMOKE).limit_minutes == 2


def test_unknown_category_is_rejected(ledger, context):
    with pytest.raises(ValidationError):
        ledger.start_break(context, "coffee")


def test_break_needs_open_session(repo, debt, clock, context):
    ledger = BreakLedger(repo, debt_ledger=debt, session=SessionTracker(NoAttendance(), clock=clock), clock=clock)

    with pytest.raises(NotCheckedInError):
        ledger.start_break(context, "smoke")

    assert repo.started == []


def test_start_persists_and_flags_session(ledger, repo, context, fixed_now):
    entry = ledger.start_break(context, "smoke", now=fixed_now)

    assert entry.active is True
    assert entry.break_id == "brk-1"
    assert repo.started[0][2] == "Smoke break - Auto-saved on start"
    assert ledger.is_on_break() is True
    assert ledger._session.state.is_on_break is True


def test_starting_an_active_break_is_a_no_op(ledger, repo, context, fixed_now):
    ledger.start_break(context, "smoke", now=fixed_now)

    assert ledger.start_break(context, "smoke", now=fixed_now + timedelta(minutes=1)) is None
    assert len(repo.started) == 1


def test_failed_start_persist_raises(ledger, repo, context, fixed_now):
    repo.fail_start = NetworkError("down")

    with pytest.raises(BreakStartFailed):
        ledger.start_break(context, "dinner", now=fixed_now)


def test_exceeded_break_is_charged_once(ledger, debt, repo, context, fixed_now):
    ledger.start_break(context, "smoke", now=fixed_now)

    # Tick second by second past the 2-minute limit.
    for seconds in range(1, 4 * 60 + 1):
        ledger.scheduler.advance(fixed_now + timedelta(seconds=seconds))

    outcome = ledger.end_break(context, "smoke", now=fixed_now + timedelta(minutes=4))

    snapshot = debt.snapshot()
    assert outcome.exceeded_minutes == pytest.approx(2)
    assert len(snapshot.history) == 1
    assert snapshot.history[0].type == DebtType.BREAK
    assert snapshot.break_overtime_minutes == pytest.approx(2)
    assert ledger.entry("smoke").exceeded_minutes == pytest.approx(2)


def test_break_within_limit_adds_no_debt(ledger, debt, repo, context, fixed_now):
    ledger.start_break(context, "washroom", now=fixed_now)

    outcome = ledger.end_break(context, "washroom", now=fixed_now + timedelta(minutes=7, seconds=40))

    assert outcome.exceeded_minutes == 0
    assert debt.snapshot().history == ()
    assert repo.ended[0][2] == 7


def test_end_clears_timers_and_updates_counters(ledger, repo, context, fixed_now):
    ledger.start_break(context, "dinner", now=fixed_now)
    assert ledger.scheduler.pending("break:dinner")

    ledger.end_break(context, "dinner", now=fixed_now + timedelta(minutes=20))

    entry = ledger.entry("dinner")
    assert ledger.scheduler.pending("break:") == []
    assert entry.active is False
    assert entry.occurrence_count == 1
    assert entry.accumulated_minutes == pytest.approx(20)
    assert ledger._session.state.is_on_break is False


def test_ending_an_inactive_break_is_a_no_op(ledger, repo, context, fixed_now):
    assert ledger.end_break(context, "prayer", now=fixed_now) is None
    assert repo.ended == []


def test_failed_end_persist_raises_after_local_update(ledger, repo, context, fixed_now):
    ledger.start_break(context, "prayer", now=fixed_now)
    repo.fail_end = NetworkError("down")

    with pytest.raises(BreakEndFailed):
        ledger.end_break(context, "prayer", now=fixed_now + timedelta(minutes=5))

    assert ledger.entry("prayer").active is False


def test_warning_and_limit_notices_fire(ledger, notifier, context, fixed_now):
    ledger.start_break(context, "washroom", now=fixed_now)

    ledger.scheduler.advance(fixed_now + timedelta(minutes=9))
    ledger.scheduler.advance(fixed_now + timedelta(minutes=10))

    assert notifier.warnings == [BreakCategory.WASHROOM]
    assert notifier.limits == [BreakCategory.WASHROOM]


def test_progress_is_synced_every_thirty_seconds(ledger, repo, context, fixed_now):
    ledger.start_break(context, "dinner", now=fixed_now)

    ledger.scheduler.advance(fixed_now + timedelta(seconds=30))
    ledger.scheduler.advance(fixed_now + timedelta(seconds=60))
    ledger.scheduler.advance(fixed_now + timedelta(seconds=90))

    assert repo.progress == [
        (BreakCategory.DINNER, 0),
        (BreakCategory.DINNER, 1),
        (BreakCategory.DINNER, 1),
    ]


def test_restore_dates_early_morning_break_to_previous_day(repo, debt, clock, context):
    now = datetime(2025, 6, 9, 2, 30)
    clock.now = now
    session = _open_session(clock, datetime(2025, 6, 8, 21, 0))
    repo.ongoing = [
        OngoingBreak(
            category=BreakCategory.DINNER,
            start_clock=time(2, 0),
            attendance_date=date(2025, 6, 10),
            duration_minutes=30,
            break_id="77",
        )
    ]
    ledger = BreakLedger(repo, debt_ledger=debt, session=session, clock=clock)

    restored = ledger.restore_ongoing(context, now=now)

    entry = ledger.entry("dinner")
    assert restored == [entry]
    assert entry.start_time == datetime(2025, 6, 9, 2, 0)
    assert entry.break_id == "77"
    assert session.state.is_on_break is True
    assert ledger.scheduler.pending("break:dinner:")


def test_restore_prefers_live_duration_within_tolerance(repo, debt, clock, context, fixed_now):
    session = _open_session(clock, fixed_now - timedelta(hours=1))
    repo.ongoing = [
        OngoingBreak(category=BreakCategory.DINNER, start_clock=time(21, 30), attendance_date=date(2025, 6, 10), duration_minutes=35)
    ]
    ledger = BreakLedger(repo, debt_ledger=debt, session=session, clock=clock)

    ledger.restore_ongoing(context, now=fixed_now)

    assert ledger.entry("dinner").restored_minutes == pytest.approx(30)


def test_restore_takes_larger_duration_when_far_apart(repo, debt, clock, context, fixed_now):
    session = _open_session(clock, fixed_now - timedelta(hours=1))
    repo.ongoing = [
        OngoingBreak(category=BreakCategory.DINNER, start_clock=time(21, 30), attendance_date=date(2025, 6, 10), duration_minutes=60)
    ]
    ledger = BreakLedger(repo, debt_ledger=debt, session=session, clock=clock)

    ledger.restore_ongoing(context, now=fixed_now)

    assert ledger.entry("dinner").restored_minutes == pytest.approx(60)


def test_restored_break_keeps_occurrence_count(repo, debt, clock, context, fixed_now):
    session = _open_session(clock, fixed_now - timedelta(hours=1))
    repo.ongoing = [
        OngoingBreak(category=BreakCategory.SMOKE, start_clock=time(21, 58), attendance_date=date(2025, 6, 10), duration_minutes=2)
    ]
    ledger = BreakLedger(repo, debt_ledger=debt, session=session, clock=clock)

    ledger.restore_ongoing(context, now=fixed_now)
    ledger.end_break(context, "smoke", now=fixed_now + timedelta(minutes=1))

    assert ledger.entry("smoke").occurrence_count == 1


def test_sync_from_record_replaces_counts(ledger, fixed_now):
    record = AttendanceRecord(
        employee_id="EMP-001",
        work_date=date(2025, 6, 10),
        status=AttendanceStatus.PRESENT,
        check_in_time=fixed_now,
        break_counts={BreakCategory.SMOKE: 3},
        break_minutes={BreakCategory.SMOKE: 7.5},
    )

    ledger.sync_from_record(record)

    assert ledger.entry("smoke").occurrence_count == 3
    assert ledger.entry("smoke").accumulated_minutes == 7.5
    assert ledger.entry("dinner").occurrence_count == 0


def test_summary_uses_today_breaks_when_available(ledger, repo, context):
    repo.today = [
        CompletedBreak(category=BreakCategory.SMOKE, duration_minutes=3),
        CompletedBreak(category=BreakCategory.DINNER, duration_minutes=35),
    ]

    ledger.refresh_today_breaks(context)

    assert ledger.summary().total_minutes == 38


def test_restored_server_duration_drives_overage_on_end(repo, debt, clock, context, fixed_now):
    session = _open_session(clock, fixed_now - timedelta(hours=1))
    repo.ongoing = [
        OngoingBreak(category=BreakCategory.DINNER, start_clock=time(21, 30), attendance_date=date(2025, 6, 10), duration_minutes=60)
    ]
    ledger = BreakLedger(repo, debt_ledger=debt, session=session, clock=clock)
    ledger.restore_ongoing(context, now=fixed_now)

    outcome = ledger.end_break(context, "dinner", now=fixed_now)

    assert outcome.duration_minutes == pytest.approx(60)
    assert outcome.exceeded_minutes == pytest.approx(20)
    assert debt.snapshot().break_overtime_minutes == pytest.approx(20)
    assert repo.ended[0][2] == 60


def test_restored_overage_is_charged_once_across_tick_and_end(repo, debt, clock, context, fixed_now):
    session = _open_session(clock, fixed_now - timedelta(hours=1))
    repo.ongoing = [
        OngoingBreak(category=BreakCategory.DINNER, start_clock=time(21, 30), attendance_date=date(2025, 6, 10), duration_minutes=60)
    ]
    ledger = BreakLedger(repo, debt_ledger=debt, session=session, clock=clock)
    ledger.restore_ongoing(context, now=fixed_now)

    ledger.scheduler.advance(fixed_now + timedelta(seconds=1))
    assert debt.snapshot().break_overtime_minutes == pytest.approx(20, abs=0.1)

    ledger.end_break(context, "dinner", now=fixed_now + timedelta(minutes=2))

    snapshot = debt.snapshot()
    assert len(snapshot.history) == 1
    assert snapshot.break_overtime_minutes == pytest.approx(22)


def test_new_break_after_restore_starts_from_zero(repo, debt, clock, context, fixed_now):
    session = _open_session(clock, fixed_now - timedelta(hours=1))
    repo.ongoing = [
        OngoingBreak(category=BreakCategory.SMOKE, start_clock=time(21, 50), attendance_date=date(2025, 6, 10), duration_minutes=30)
    ]
    ledger = BreakLedger(repo, debt_ledger=debt, session=session, clock=clock)
    ledger.restore_ongoing(context, now=fixed_now)
    ledger.end_break(context, "smoke", now=fixed_now)

    ledger.start_break(context, "smoke", now=fixed_now + timedelta(minutes=5))

    assert ledger.current_duration("smoke", now=fixed_now + timedelta(minutes=6)) == pytest.approx(1)
