from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Tuple

from ..core.enums import DebtType


@dataclass(frozen=True)
class DebtEntry:
    entry_id: int
    type: DebtType
    minutes: float
    reason: str
    timestamp: datetime


@dataclass(frozen=True)
class OvertimeDebt:
    """Snapshot of the ledger; ``total`` and ``net`` are derived, never stored."""

    break_overtime_minutes: float = 0
    late_overtime_minutes: float = 0
    worked_overtime_minutes: float = 0
    history: Tuple[DebtEntry, ...] = ()

    @property
    def total_debt_minutes(self) -> float:
        return self.break_overtime_minutes + self.late_overtime_minutes

    @property
    def net_debt_minutes(self) -> float:
        return max(0, self.total_debt_minutes - self.worked_overtime_minutes)
