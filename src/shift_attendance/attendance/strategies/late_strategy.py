from __future__ import annotations

import math
from datetime import datetime

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Late check-in; any started minute past the cutoff counts."""

    def decide_checkin(self, *, now: datetime, cutoff: datetime) -> StatusDecision:
        late_by = max(1, math.ceil((now - cutoff).total_seconds() / 60))
        return StatusDecision(status=AttendanceStatus.LATE, late_by_minutes=late_by, note="Late arrival")
