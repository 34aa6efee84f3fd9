from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import BreakCategory
from ..users.model import SessionContext
from .model import BreakRule, CompletedBreak, OngoingBreak


class BreakRepository(Protocol):
    def get_rules(self) -> Sequence[BreakRule]:
        raise NotImplementedError

    def start_break(
        self,
        context: SessionContext,
        *,
        category: BreakCategory,
        start_time: datetime,
        reason: str,
    ) -> Optional[str]:
        raise NotImplementedError

    def update_progress(
        self,
        context: SessionContext,
        *,
        category: BreakCategory,
        current_time: datetime,
        duration_minutes: int,
    ) -> None:
        raise NotImplementedError

    def end_break(
        self,
        context: SessionContext,
        *,
        category: BreakCategory,
        end_time: datetime,
        duration_minutes: int,
    ) -> None:
        raise NotImplementedError

    def get_ongoing(self, context: SessionContext) -> Sequence[OngoingBreak]:
        raise NotImplementedError

    def get_today_breaks(self, context: SessionContext) -> Sequence[CompletedBreak]:
        raise NotImplementedError
