from __future__ import annotations

from datetime import datetime

import pytest

from shift_attendance.users.model import SessionContext


@pytest.fixture
def fixed_now() -> datetime:
    # 22:00 on a night shift, local (UTC+5) wall-clock.
    return datetime(2025, 6, 10, 22, 0, 0)


@pytest.fixture
def context() -> SessionContext:
    return SessionContext(employee_id="EMP-001", token="token-abc", email="emp@example.com", name="Night Worker")


class Clock:
    """Mutable wall-clock for services that take a ``clock`` callable."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock(fixed_now) -> Clock:
    return Clock(fixed_now)
