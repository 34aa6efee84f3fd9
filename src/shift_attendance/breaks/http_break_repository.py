from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, List, Mapping, Optional, Sequence

from ..api.base import request_json, unwrap_data, unwrap_list
from ..api.connection import ApiConnection
from ..common.datetime_utils import format_clock, normalize_date, parse_clock
from ..common.validators import require_non_empty, require_non_negative, require_positive_int
from ..core.enums import BreakCategory
from ..core.exceptions import ValidationError
from ..users.model import SessionContext
from .model import BreakRule, CompletedBreak, OngoingBreak
from .repository import BreakRepository

logger = logging.getLogger(__name__)


def parse_category(value: Any) -> BreakCategory:
    text = require_non_empty(value, "break_type").lower()
    try:
        return BreakCategory(text)
    except ValueError:
        raise ValidationError(f"Unknown break type: {value!r}")


def rule_from_api(row: Mapping[str, Any]) -> BreakRule:
    if not isinstance(row, Mapping):
        raise ValidationError(f"Break rule must be an object, got {type(row).__name__}")
    category = parse_category(row.get("type"))
    return BreakRule(
        category=category,
        name=str(row.get("name") or category.api_name),
        limit_minutes=require_positive_int(row.get("limit"), "limit"),
    )


def _break_id(row: Mapping[str, Any]) -> Optional[str]:
    value = row.get("id")
    return str(value) if value is not None else None


class HttpBreakRepository(BreakRepository):
    def __init__(self, conn: ApiConnection):
        self._conn = conn

    def get_rules(self) -> Sequence[BreakRule]:
        # Rules are public; the endpoint takes no bearer token.
        body = request_json(self._conn, "GET", "/rules/break-rules")
        rules: List[BreakRule] = []
        for row in unwrap_list(body):
            try:
                rules.append(rule_from_api(row))
            except ValidationError as e:
                logger.warning("Skipping break rule %r: %s", row, e)
        return rules

    def start_break(self, context: SessionContext, *, category: BreakCategory, start_time: datetime, reason: str) -> Optional[str]:
        body = request_json(
            self._conn,
            "POST",
            "/attendance/break-start",
            context=context,
            payload={
                "employee_id": context.employee_id,
                "break_type": category.api_name,
                "break_start_time": format_clock(start_time),
                "reason": reason,
            },
        )
        data = unwrap_data(body) or {}
        return _break_id(data) if isinstance(data, Mapping) else None

    def update_progress(self, context: SessionContext, *, category: BreakCategory, current_time: datetime, duration_minutes: int) -> None:
        request_json(
            self._conn,
            "PATCH",
            "/attendance/break-progress",
            context=context,
            payload={
                "employee_id": context.employee_id,
                "break_type": category.api_name,
                "current_time": format_clock(current_time),
                "current_duration_minutes": int(duration_minutes),
            },
        )

    def end_break(self, context: SessionContext, *, category: BreakCategory, end_time: datetime, duration_minutes: int) -> None:
        request_json(
            self._conn,
            "PATCH",
            "/attendance/break-end",
            context=context,
            payload={
                "employee_id": context.employee_id,
                "break_type": category.api_name,
                "break_end_time": format_clock(end_time),
                "break_duration_minutes": int(duration_minutes),
            },
        )

    def get_ongoing(self, context: SessionContext) -> Sequence[OngoingBreak]:
        body = request_json(self._conn, "GET", f"/attendance/ongoing-breaks/{context.employee_id}", context=context)
        return [
            OngoingBreak(
                category=parse_category(r.get("break_type")),
                start_clock=parse_clock(require_non_empty(r.get("break_start_time"), "break_start_time")),
                attendance_date=normalize_date(r.get("attendance_date")),
                duration_minutes=require_non_negative(r.get("break_duration_minutes"), "break_duration_minutes"),
                break_id=_break_id(r),
            )
            for r in unwrap_list(body)
        ]

    def get_today_breaks(self, context: SessionContext) -> Sequence[CompletedBreak]:
        body = request_json(self._conn, "GET", f"/attendance/today-breaks/{context.employee_id}", context=context)
        return [
            CompletedBreak(
                category=parse_category(r.get("break_type")),
                duration_minutes=require_non_negative(r.get("break_duration_minutes"), "break_duration_minutes"),
                start_clock=parse_clock(r.get("break_start_time")),
                end_clock=parse_clock(r.get("break_end_time")),
                break_id=_break_id(r),
            )
            for r in unwrap_list(body)
        ]
