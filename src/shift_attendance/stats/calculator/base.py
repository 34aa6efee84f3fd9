from __future__ import annotations

from abc import ABC, abstractmethod

from ...attendance.model import AttendanceRecord


class WorkingTimeCalculator(ABC):
    """Calculator interface (Strategy Pattern for working time)."""

    @abstractmethod
    def worked_minutes(self, record: AttendanceRecord) -> float:
        raise NotImplementedError

    @abstractmethod
    def gross_minutes(self, record: AttendanceRecord) -> float:
        raise NotImplementedError
