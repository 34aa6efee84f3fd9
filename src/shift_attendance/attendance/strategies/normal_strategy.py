from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class NormalStrategy(AttendanceStrategy):
    """Check-in inside the grace period."""

    def decide_checkin(self, *, now: datetime, cutoff: datetime) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT, note="On time")
