from __future__ import annotations

from datetime import date
from typing import Any, Dict, Mapping, Optional, Sequence

from ..api.base import request_json, unwrap_data, unwrap_list
from ..api.connection import ApiConnection
from ..common.datetime_utils import normalize_date, parse_timestamp
from ..common.validators import require_non_negative
from ..common.workdate import anchor_to_work_date
from ..core.enums import AttendanceStatus, BreakCategory
from ..core.exceptions import ValidationError
from ..users.model import SessionContext
from .model import AttendanceRecord, CheckOutData
from .repository import AttendanceRepository


def _shift_time(value: Any, work_date: date):
    """Check-in/out values are either full timestamps or bare ``HH:MM:SS`` on the work-date."""
    if not value:
        return None
    if isinstance(value, str) and not _has_date(value):
        return anchor_to_work_date(work_date, value)
    return parse_timestamp(value)


def record_from_api(row: Mapping[str, Any], *, employee_id: str) -> AttendanceRecord:
    """Normalize one backend attendance row into the domain record."""
    if not isinstance(row, Mapping):
        raise ValidationError(f"Attendance record must be an object, got {type(row).__name__}")

    work_date = normalize_date(row.get("attendance_date") or row.get("date"))
    if work_date is None:
        raise ValidationError("Attendance record has no date")

    try:
        status = AttendanceStatus.parse(row.get("status"))
    except ValueError:
        raise ValidationError(f"Unknown attendance status: {row.get('status')!r}")

    counts: Dict[BreakCategory, int] = {}
    minutes: Dict[BreakCategory, float] = {}
    for category in BreakCategory:
        counts[category] = int(require_non_negative(row.get(f"{category.value}_break_count"), f"{category.value}_break_count"))
        minutes[category] = require_non_negative(
            row.get(f"{category.value}_break_duration_minutes"), f"{category.value}_break_duration_minutes"
        )

    return AttendanceRecord(
        employee_id=str(row.get("employee_id") or employee_id),
        work_date=work_date,
        status=status,
        check_in_time=_shift_time(row.get("check_in_time"), work_date),
        check_out_time=_shift_time(row.get("check_out_time"), work_date),
        net_working_minutes=require_non_negative(row.get("net_working_time_minutes"), "net_working_time_minutes"),
        gross_working_minutes=require_non_negative(row.get("gross_working_time_minutes"), "gross_working_time_minutes"),
        late_by_minutes=require_non_negative(row.get("late_by_minutes"), "late_by_minutes"),
        overtime_minutes=require_non_negative(row.get("overtime_minutes"), "overtime_minutes"),
        break_counts=counts,
        break_minutes=minutes,
        remarks=row.get("remarks"),
    )


class HttpAttendanceRepository(AttendanceRepository):
    def __init__(self, conn: ApiConnection):
        self._conn = conn

    def check_in(self, context: SessionContext) -> Dict[str, Any]:
        body = request_json(
            self._conn,
            "POST",
            "/attendance/check-in",
            context=context,
            payload={
                "employee_id": context.employee_id,
                "email": context.email,
                "name": context.name,
                "device_info": context.device_info,
            },
        )
        return unwrap_data(body) or {}

    def check_out(self, context: SessionContext) -> CheckOutData:
        body = request_json(
            self._conn,
            "POST",
            "/attendance/check-out",
            context=context,
            payload={"employee_id": context.employee_id},
        )
        data = unwrap_data(body) or {}
        if "net_working_time_minutes" not in data:
            raise ValidationError("Check-out response is missing net_working_time_minutes")
        return CheckOutData(
            net_working_minutes=require_non_negative(data.get("net_working_time_minutes"), "net_working_time_minutes"),
            check_out_time=parse_timestamp(data.get("check_out_time")) if _has_date(data.get("check_out_time")) else None,
        )

    def get_today(self, context: SessionContext) -> Optional[AttendanceRecord]:
        body = request_json(self._conn, "GET", f"/attendance/today/{context.employee_id}", context=context)
        data = unwrap_data(body)
        if not data:
            return None
        return record_from_api(data, employee_id=context.employee_id)

    def get_monthly(self, context: SessionContext, *, year: int, month: int) -> Sequence[AttendanceRecord]:
        body = request_json(
            self._conn,
            "GET",
            f"/attendance/monthly/{context.employee_id}",
            context=context,
            params={"year": int(year), "month": int(month)},
        )
        return [record_from_api(r, employee_id=context.employee_id) for r in unwrap_list(body)]


def _has_date(value: Any) -> bool:
    # "HH:MM:SS[.fff]" has neither a date separator nor the ISO "T".
    return isinstance(value, str) and ("-" in value or "T" in value)
