from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Status values stored by the backend for one work-date."""

    PRESENT = "present"
    LATE = "late"
    ABSENT = "absent"
    LEAVE = "leave"
    HALFDAY = "halfday"
    OFF = "off"
    PENDING = "pending"

    @classmethod
    def parse(cls, value) -> "AttendanceStatus":
        if isinstance(value, cls):
            return value
        v = str(value or "").strip().lower().replace("-", "").replace("_", "").replace(" ", "")
        if v == "halfday":
            return cls.HALFDAY
        return cls(v or cls.PENDING.value)


class BreakCategory(str, Enum):
    SMOKE = "smoke"
    DINNER = "dinner"
    WASHROOM = "washroom"
    PRAYER = "prayer"

    @property
    def api_name(self) -> str:
        """Backend spelling ("Smoke", "Dinner", ...)."""
        return self.value.capitalize()


class DebtType(str, Enum):
    BREAK = "break"
    LATE = "late"
