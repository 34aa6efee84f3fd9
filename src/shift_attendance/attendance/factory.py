from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time

from ..common.datetime_utils import to_local
from ..core.constants import STATUS_GRACE_CUTOFF
from .strategies.base import AttendanceStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import NormalStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose the check-in strategy from the grace cutoff."""

    grace_cutoff: time = STATUS_GRACE_CUTOFF

    def cutoff_for(self, now: datetime) -> datetime:
        # Time of day only: an after-midnight check-in is earlier than 22:15.
        return datetime.combine(to_local(now).date(), self.grace_cutoff)

    def for_checkin(self, *, now: datetime) -> AttendanceStrategy:
        if to_local(now) <= self.cutoff_for(now):
            return NormalStrategy()
        return LateStrategy()
