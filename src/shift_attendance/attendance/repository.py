from __future__ import annotations

from typing import Any, Dict, Optional, Protocol, Sequence

from ..users.model import SessionContext
from .model import AttendanceRecord, CheckOutData


class AttendanceRepository(Protocol):
    def check_in(self, context: SessionContext) -> Dict[str, Any]:
        raise NotImplementedError

    def check_out(self, context: SessionContext) -> CheckOutData:
        raise NotImplementedError

    def get_today(self, context: SessionContext) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_monthly(self, context: SessionContext, *, year: int, month: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
