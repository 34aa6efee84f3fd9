from __future__ import annotations

import logging
import math
from dataclasses import replace
from datetime import datetime, time
from typing import Callable, Optional

from ..common.datetime_utils import minutes_between, now_local, to_local
from ..core.constants import DEBT_EXPECTED_START, DEBT_GRACE_MINUTES
from ..core.enums import DebtType
from ..core.exceptions import ValidationError
from .model import DebtEntry, OvertimeDebt

logger = logging.getLogger(__name__)


class OvertimeDebtLedger:
    """Minutes owed from late arrivals and break overruns.

    Pure in-memory state: a new ledger starts empty on every reload.
    """

    def __init__(
        self,
        *,
        expected_start: Optional[time] = DEBT_EXPECTED_START,
        grace_minutes: int = DEBT_GRACE_MINUTES,
        clock: Callable[[], datetime] = now_local,
    ):
        self._expected_start = expected_start
        self._grace_minutes = int(grace_minutes)
        self._clock = clock
        self._debt = OvertimeDebt()
        self._next_id = 1

    def snapshot(self) -> OvertimeDebt:
        return self._debt

    @property
    def net_debt_minutes(self) -> float:
        return self._debt.net_debt_minutes

    def reset(self) -> None:
        self._debt = OvertimeDebt()
        self._next_id = 1

    def _with_category(self, debt: OvertimeDebt, debt_type: DebtType, delta: float) -> OvertimeDebt:
        if debt_type == DebtType.BREAK:
            return replace(debt, break_overtime_minutes=debt.break_overtime_minutes + delta)
        return replace(debt, late_overtime_minutes=debt.late_overtime_minutes + delta)

    def add_debt(self, debt_type: DebtType, minutes: float, reason: str, *, now: Optional[datetime] = None) -> DebtEntry:
        debt_type = DebtType(debt_type)
        if minutes < 0:
            raise ValidationError("Debt minutes must not be negative")

        entry = DebtEntry(
            entry_id=self._next_id,
            type=debt_type,
            minutes=float(minutes),
            reason=reason,
            timestamp=now or self._clock(),
        )
        self._next_id += 1

        debt = self._with_category(self._debt, debt_type, float(minutes))
        self._debt = replace(debt, history=debt.history + (entry,))
        logger.info("Overtime debt +%.2fm (%s): %s", minutes, debt_type.value, reason)
        return entry

    def revise_debt(self, entry_id: int, minutes: float, *, reason: Optional[str] = None) -> DebtEntry:
        """Replace the amount of an existing entry in place.

        Used when an overage first recorded on crossing the limit is finalised
        on break end, so one occurrence keeps exactly one history entry.
        """
        if minutes < 0:
            raise ValidationError("Debt minutes must not be negative")

        history = list(self._debt.history)
        for i, entry in enumerate(history):
            if entry.entry_id == entry_id:
                break
        else:
            raise ValidationError(f"Unknown debt entry: {entry_id}")

        revised = replace(entry, minutes=float(minutes), reason=reason or entry.reason)
        history[i] = revised
        debt = self._with_category(self._debt, entry.type, revised.minutes - entry.minutes)
        self._debt = replace(debt, history=tuple(history))
        return revised

    def add_worked_overtime(self, minutes: float) -> OvertimeDebt:
        if minutes < 0:
            raise ValidationError("Worked overtime must not be negative")
        self._debt = replace(self._debt, worked_overtime_minutes=self._debt.worked_overtime_minutes + float(minutes))
        return self._debt

    def record_late_arrival(self, now: Optional[datetime] = None) -> Optional[DebtEntry]:
        """Late debt against the expected start; only the part beyond grace counts."""
        if self._expected_start is None:
            return None

        now = to_local(now or self._clock())
        expected = datetime.combine(now.date(), self._expected_start)
        late_by = minutes_between(expected, now)
        if late_by <= self._grace_minutes:
            return None

        late_minutes = math.floor(late_by - self._grace_minutes + 0.5)
        if late_minutes <= 0:
            return None
        return self.add_debt(DebtType.LATE, late_minutes, f"Late arrival by {late_minutes} minutes", now=now)
