from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..attendance.service import SessionTracker
from ..common.datetime_utils import now_local, to_local
from ..common.workdate import resolve_break_start
from ..core.constants import BREAK_PROGRESS_SECONDS, DEFAULT_BREAK_RULES, RESTORE_TOLERANCE_MINUTES
from ..core.enums import BreakCategory, DebtType
from ..core.exceptions import AuthError, BreakEndFailed, BreakStartFailed, NetworkError, ValidationError
from ..overtime.service import OvertimeDebtLedger
from ..scheduling.scheduler import TickScheduler
from ..users.model import SessionContext
from .model import BreakEntry, BreakOutcome, BreakRule, BreakSummary, CompletedBreak
from .notifier import BreakNotifier, LoggingNotifier
from .repository import BreakRepository

logger = logging.getLogger(__name__)


def default_rules() -> List[BreakRule]:
    return [BreakRule(category=BreakCategory(c), name=name, limit_minutes=limit) for c, name, limit in DEFAULT_BREAK_RULES]


class BreakLedger:
    """Categorised breaks with soft limits.

    Limits never end a break. Every minute over a limit is charged to the
    overtime debt ledger once per occurrence: the first crossing (seen by
    ``tick``) opens a debt entry, and ``end_break`` finalises that same entry
    instead of adding a second one.
    """

    def __init__(
        self,
        breaks: BreakRepository,
        *,
        debt_ledger: Optional[OvertimeDebtLedger] = None,
        session: Optional[SessionTracker] = None,
        scheduler: Optional[TickScheduler] = None,
        notifier: Optional[BreakNotifier] = None,
        clock: Callable[[], datetime] = now_local,
        progress_every: timedelta = timedelta(seconds=BREAK_PROGRESS_SECONDS),
    ):
        self._breaks = breaks
        self._debt = debt_ledger
        self._session = session
        self._notifier = notifier or LoggingNotifier()
        self._clock = clock
        self._progress_every = progress_every
        self._entries: Dict[BreakCategory, BreakEntry] = {}
        self._today_breaks: List[CompletedBreak] = []

        if scheduler is None:
            scheduler = session.scheduler if session is not None else TickScheduler()
        self.scheduler = scheduler
        self.scheduler.on_tick(self.tick)

        self.configure(default_rules())

    # -- configuration -----------------------------------------------------

    @property
    def entries(self) -> Dict[BreakCategory, BreakEntry]:
        return dict(self._entries)

    def entry(self, category) -> BreakEntry:
        try:
            return self._entries[BreakCategory(category)]
        except (KeyError, ValueError):
            raise ValidationError(f"No break rule configured for {category!r}")

    def configure(self, rules: Sequence[BreakRule]) -> None:
        """One entry per rule; existing counters survive a limit change."""
        for rule in rules:
            entry = self._entries.get(rule.category)
            if entry is None:
                self._entries[rule.category] = BreakEntry(category=rule.category, name=rule.name, limit_minutes=rule.limit_minutes)
            else:
                entry.name = rule.name
                entry.limit_minutes = rule.limit_minutes

    def load_rules(self, context: SessionContext, *, now: Optional[datetime] = None) -> List[BreakRule]:
        """Fetch limits from the backend (defaults stay on failure), then restore open breaks."""
        try:
            rules = list(self._breaks.get_rules())
        except (NetworkError, ValidationError) as e:
            logger.warning("Failed to fetch break rules, using defaults: %s", e)
            rules = []

        if rules:
            self.configure(rules)
            logger.info("Loaded %d break rules", len(rules))

        self.restore_ongoing(context, now=now)
        return [BreakRule(category=e.category, name=e.name, limit_minutes=e.limit_minutes) for e in self._entries.values()]

    # -- break lifecycle ---------------------------------------------------

    def is_on_break(self) -> bool:
        return any(e.active for e in self._entries.values())

    def start_break(self, context: SessionContext, category, *, now: Optional[datetime] = None) -> Optional[BreakEntry]:
        entry = self.entry(category)
        if entry.active:
            logger.info("%s break already active", entry.name)
            return None

        now = to_local(now or self._clock())
        if self._session is not None:
            self._session.set_on_break(True)

        entry.active = True
        entry.start_time = now
        entry.exceeded_duration = 0
        entry.debt_entry_id = None
        entry.restored_minutes = None
        entry.offset_minutes = 0
        entry.break_id = None
        self._schedule_timers(context, entry, now=now)
        logger.info("%s break started at %s (limit %sm)", entry.name, now.time(), entry.limit_minutes)

        # Persisted on start, not deferred to the end, so a reload can restore it.
        try:
            entry.break_id = self._breaks.start_break(
                context,
                category=entry.category,
                start_time=now,
                reason=f"{entry.name} break - Auto-saved on start",
            )
        except (NetworkError, ValidationError, AuthError) as e:
            logger.error("Failed to save %s break start: %s", entry.name, e)
            raise BreakStartFailed(str(e)) from e
        return entry

    def end_break(self, context: SessionContext, category, *, now: Optional[datetime] = None) -> Optional[BreakOutcome]:
        entry = self.entry(category)
        if not entry.active or entry.start_time is None:
            logger.info("%s break is not active", entry.name)
            return None

        now = to_local(now or self._clock())
        duration = entry.current_duration(now)
        exceeded = max(0.0, duration - entry.limit_minutes)

        self._charge_overage(entry, exceeded, now=now)
        self._cancel_timers(entry)

        entry.active = False
        entry.start_time = None
        entry.accumulated_minutes += duration
        entry.exceeded_minutes += exceeded
        entry.occurrence_count += 1
        entry.exceeded_duration = 0
        entry.debt_entry_id = None
        entry.restored_minutes = None
        entry.offset_minutes = 0

        if self._session is not None and not self.is_on_break():
            self._session.set_on_break(False)

        logger.info("%s break ended after %.2fm (exceeded %.2fm)", entry.name, duration, exceeded)
        outcome = BreakOutcome(category=entry.category, duration_minutes=duration, exceeded_minutes=exceeded)

        try:
            self._breaks.end_break(context, category=entry.category, end_time=now, duration_minutes=math.floor(duration))
        except (NetworkError, ValidationError, AuthError) as e:
            logger.error("Failed to save %s break end: %s", entry.name, e)
            raise BreakEndFailed(str(e)) from e
        return outcome

    def tick(self, now: datetime) -> None:
        """First-crossing detection for every running break."""
        now = to_local(now)
        for entry in self._entries.values():
            if not entry.active or entry.start_time is None:
                continue
            exceeded = entry.current_duration(now) - entry.limit_minutes
            if exceeded > 0 and entry.exceeded_duration == 0:
                logger.warning("%s break exceeded its %sm limit", entry.name, entry.limit_minutes)
                self._charge_overage(entry, exceeded, now=now)

    def _charge_overage(self, entry: BreakEntry, exceeded: float, *, now: datetime) -> None:
        if exceeded <= 0:
            return
        reason = f"{entry.name} exceeded by {math.floor(exceeded + 0.5)} minutes"
        if self._debt is not None:
            if entry.debt_entry_id is None:
                entry.debt_entry_id = self._debt.add_debt(DebtType.BREAK, exceeded, reason, now=now).entry_id
            else:
                self._debt.revise_debt(entry.debt_entry_id, exceeded, reason=reason)
        entry.exceeded_duration = exceeded

    # -- timers ------------------------------------------------------------

    def _schedule_timers(self, context: SessionContext, entry: BreakEntry, *, now: datetime) -> None:
        self._cancel_timers(entry)
        # A restored break may already be further along than its live span.
        start = entry.start_time - timedelta(minutes=entry.offset_minutes)
        key = f"break:{entry.category.value}"

        warning_at = start + timedelta(minutes=entry.limit_minutes - 1)
        if entry.limit_minutes > 1 and warning_at > now:
            entry.timers.append(
                self.scheduler.call_at(warning_at, lambda _now: self._notifier.break_warning(entry), name=f"{key}:warning")
            )

        limit_at = start + timedelta(minutes=entry.limit_minutes)
        if limit_at > now:
            entry.timers.append(
                self.scheduler.call_at(limit_at, lambda _now: self._notifier.break_limit_reached(entry), name=f"{key}:limit")
            )

        entry.timers.append(
            self.scheduler.call_every(
                now,
                self._progress_every,
                lambda tick_now: self.sync_progress(context, entry.category, now=tick_now),
                name=f"{key}:progress",
            )
        )

    def _cancel_timers(self, entry: BreakEntry) -> None:
        for timer in entry.timers:
            self.scheduler.cancel(timer)
        entry.timers = []

    def sync_progress(self, context: SessionContext, category, *, now: Optional[datetime] = None) -> None:
        """Best-effort running duration push every 30 seconds."""
        entry = self.entry(category)
        if not entry.active:
            return
        now = to_local(now or self._clock())
        duration = math.floor(entry.current_duration(now))
        try:
            self._breaks.update_progress(context, category=entry.category, current_time=now, duration_minutes=duration)
        except (NetworkError, ValidationError, AuthError) as e:
            logger.warning("Failed to auto-save %s break progress: %s", entry.name, e)

    def shutdown(self) -> None:
        for entry in self._entries.values():
            self._cancel_timers(entry)

    # -- reload & background sync -----------------------------------------

    def restore_ongoing(self, context: SessionContext, *, now: Optional[datetime] = None) -> List[BreakEntry]:
        """Rebuild breaks the backend still reports as open."""
        try:
            ongoing = list(self._breaks.get_ongoing(context))
        except (NetworkError, ValidationError, AuthError) as e:
            logger.warning("Failed to fetch ongoing breaks: %s", e)
            return []

        now = to_local(now or self._clock())
        restored: List[BreakEntry] = []
        for item in ongoing:
            entry = self._entries.get(item.category)
            if entry is None:
                logger.warning("Ongoing %s break has no configured rule", item.category.value)
                continue
            if entry.active:
                continue

            start = resolve_break_start(item.attendance_date or now.date(), item.start_clock)
            live = max(0.0, (now - start).total_seconds() / 60)
            server = float(item.duration_minutes or 0)
            chosen = live if abs(server - live) <= RESTORE_TOLERANCE_MINUTES else max(server, live)

            entry.active = True
            entry.start_time = start
            entry.break_id = item.break_id
            entry.exceeded_duration = 0
            entry.debt_entry_id = None
            entry.restored_minutes = chosen
            entry.offset_minutes = chosen - live
            self._schedule_timers(context, entry, now=now)
            restored.append(entry)
            logger.info("Restored %s break started %s (%.2fm, server %.2fm)", entry.name, start, chosen, server)

        if restored and self._session is not None:
            if self._session.state.checked_in:
                self._session.set_on_break(True)
            else:
                logger.warning("Ongoing break restored without an open attendance session")
        return restored

    def refresh_today_breaks(self, context: SessionContext) -> List[CompletedBreak]:
        try:
            self._today_breaks = list(self._breaks.get_today_breaks(context))
        except (NetworkError, ValidationError, AuthError) as e:
            logger.warning("Failed to fetch today's breaks: %s", e)
        return list(self._today_breaks)

    @property
    def today_breaks(self) -> List[CompletedBreak]:
        return list(self._today_breaks)

    def sync_from_record(self, record: AttendanceRecord) -> None:
        """Counts and durations from the backend record replace local ones."""
        for category, entry in self._entries.items():
            entry.occurrence_count = int(record.break_counts.get(category, 0))
            entry.accumulated_minutes = float(record.break_minutes.get(category, 0))

    # -- reporting ---------------------------------------------------------

    def current_duration(self, category, *, now: Optional[datetime] = None) -> float:
        entry = self.entry(category)
        return entry.current_duration(to_local(now or self._clock()))

    def total_break_minutes(self) -> float:
        if self._today_breaks:
            return sum(b.duration_minutes for b in self._today_breaks)
        return sum(e.accumulated_minutes for e in self._entries.values())

    def summary(self) -> BreakSummary:
        return BreakSummary(
            total_minutes=self.total_break_minutes(),
            exceeded_minutes=sum(e.exceeded_minutes for e in self._entries.values()),
        )
