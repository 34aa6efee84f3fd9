from __future__ import annotations

import json
from datetime import date, datetime, time

import pytest
import requests

from shift_attendance.api.connection import ApiConfig, ApiConnection
from shift_attendance.attendance.http_attendance_repository import HttpAttendanceRepository, record_from_api
from shift_attendance.breaks.http_break_repository import HttpBreakRepository
from shift_attendance.core.enums import AttendanceStatus, BreakCategory
from shift_attendance.core.exceptions import AuthError, NetworkError, ValidationError


def _response(status: int, body) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.reason = "OK" if status < 400 else "Error"
    response._content = body.encode("utf-8") if isinstance(body, str) else json.dumps(body).encode("utf-8")
    return response


class Backend:
    """Scripted replacement for ``requests.Session.request``."""

    def __init__(self):
        self.calls = []
        self.replies = {}

    def reply(self, method: str, path: str, status: int, body) -> None:
        self.replies[(method, path)] = (status, body)

    def __call__(self, method, url, **kwargs):
        path = url.split("/api/v1", 1)[1]
        self.calls.append({"method": method, "path": path, **kwargs})
        if (method, path) not in self.replies:
            raise requests.ConnectionError(f"no route for {method} {path}")
        status, body = self.replies[(method, path)]
        return _response(status, body)


@pytest.fixture
def backend(monkeypatch):
    fake = Backend()
    monkeypatch.setattr(requests.Session, "request", fake)
    return fake


@pytest.fixture
def conn(backend):
    return ApiConnection(ApiConfig(base_url="http://backend.test/", timeout=3))


def test_url_prefix_is_versioned():
    conn = ApiConnection(ApiConfig(base_url="http://backend.test/"))
    assert conn.url("/attendance/check-in") == "http://backend.test/api/v1/attendance/check-in"


def test_check_in_sends_bearer_token_and_identity(conn, backend, context):
    backend.reply("POST", "/attendance/check-in", 201, {"success": True, "data": {"check_in_time": "21:03:00"}})

    HttpAttendanceRepository(conn).check_in(context)

    call = backend.calls[0]
    assert call["headers"]["Authorization"] == "Bearer token-abc"
    assert call["json"]["employee_id"] == "EMP-001"
    assert call["timeout"] == 3


def test_unauthorised_response_becomes_auth_error(conn, backend, context):
    backend.reply("POST", "/attendance/check-in", 401, {"success": False, "message": "Token expired"})

    with pytest.raises(AuthError, match="Token expired"):
        HttpAttendanceRepository(conn).check_in(context)


def test_server_error_carries_status_and_message(conn, backend, context):
    backend.reply("POST", "/attendance/check-out", 500, {"success": False, "message": "DB down"})

    with pytest.raises(NetworkError) as excinfo:
        HttpAttendanceRepository(conn).check_out(context)

    assert excinfo.value.status_code == 500
    assert "DB down" in str(excinfo.value)


def test_non_json_body_is_a_network_error(conn, backend, context):
    backend.reply("GET", "/attendance/today/EMP-001", 200, "<html>maintenance</html>")

    with pytest.raises(NetworkError):
        HttpAttendanceRepository(conn).get_today(context)


def test_transport_failure_is_a_network_error(conn, backend, context):
    with pytest.raises(NetworkError):
        HttpAttendanceRepository(conn).get_today(context)


def test_check_out_requires_net_minutes(conn, backend, context):
    backend.reply("POST", "/attendance/check-out", 200, {"success": True, "data": {}})

    with pytest.raises(ValidationError):
        HttpAttendanceRepository(conn).check_out(context)


def test_check_out_returns_backend_net_minutes(conn, backend, context):
    backend.reply(
        "POST",
        "/attendance/check-out",
        200,
        {"success": True, "data": {"net_working_time_minutes": 498, "check_out_time": "2025-06-11T01:05:00.000Z"}},
    )

    data = HttpAttendanceRepository(conn).check_out(context)

    assert data.net_working_minutes == 498
    assert data.check_out_time == datetime(2025, 6, 11, 6, 5)


def test_monthly_history_is_normalised(conn, backend, context):
    backend.reply(
        "GET",
        "/attendance/monthly/EMP-001",
        200,
        {
            "success": True,
            "data": [
                {
                    "attendance_date": "2025-06-09T00:00:00.000Z",
                    "status": "Late",
                    "check_in_time": "22:40:00",
                    "check_out_time": "06:10:00",
                    "net_working_time_minutes": 420,
                    "smoke_break_count": 2,
                    "smoke_break_duration_minutes": 5,
                    "dinner_break_count": 1,
                    "dinner_break_duration_minutes": "38",
                },
                {"attendance_date": "2025-06-10", "status": "off"},
            ],
        },
    )

    records = HttpAttendanceRepository(conn).get_monthly(context, year=2025, month=6)

    assert backend.calls[0]["params"] == {"year": 2025, "month": 6}
    first = records[0]
    assert first.work_date == date(2025, 6, 9)
    assert first.status == AttendanceStatus.LATE
    assert first.check_in_time == datetime(2025, 6, 9, 22, 40)
    assert first.check_out_time == datetime(2025, 6, 10, 6, 10)
    assert first.break_counts[BreakCategory.SMOKE] == 2
    assert first.total_break_minutes == 43
    assert records[1].status == AttendanceStatus.OFF
    assert records[1].check_in_time is None


def test_record_with_checkout_but_no_checkin_is_rejected():
    with pytest.raises(ValidationError):
        record_from_api(
            {"attendance_date": "2025-06-09", "status": "present", "check_out_time": "06:00:00"},
            employee_id="EMP-001",
        )


def test_unknown_status_is_rejected():
    with pytest.raises(ValidationError):
        record_from_api({"attendance_date": "2025-06-09", "status": "vacation"}, employee_id="EMP-001")


def test_break_rules_are_fetched_without_token(conn, backend):
    backend.reply(
        "GET",
        "/rules/break-rules",
        200,
        {"success": True, "data": [{"type": "Smoke", "name": "Smoke", "limit": 3}, {"type": "dinner", "limit": 45}]},
    )

    rules = HttpBreakRepository(conn).get_rules()

    assert backend.calls[0]["headers"] == {}
    assert [(r.category, r.limit_minutes) for r in rules] == [(BreakCategory.SMOKE, 3), (BreakCategory.DINNER, 45)]
    assert rules[1].name == "Dinner"


def test_break_start_uses_backend_spelling(conn, backend, context):
    backend.reply("POST", "/attendance/break-start", 201, {"success": True, "data": {"id": 42}})

    break_id = HttpBreakRepository(conn).start_break(
        context,
        category=BreakCategory.PRAYER,
        start_time=datetime(2025, 6, 10, 23, 5, 9),
        reason="Prayer break - Auto-saved on start",
    )

    assert break_id == "42"
    payload = backend.calls[0]["json"]
    assert payload["break_type"] == "Prayer"
    assert payload["break_start_time"] == "23:05:09"


def test_break_end_sends_whole_minutes(conn, backend, context):
    backend.reply("PATCH", "/attendance/break-end", 200, {"success": True})

    HttpBreakRepository(conn).end_break(
        context, category=BreakCategory.SMOKE, end_time=datetime(2025, 6, 10, 23, 0), duration_minutes=4
    )

    assert backend.calls[0]["json"]["break_duration_minutes"] == 4


def test_ongoing_breaks_are_parsed(conn, backend, context):
    backend.reply(
        "GET",
        "/attendance/ongoing-breaks/EMP-001",
        200,
        {
            "success": True,
            "data": [
                {
                    "id": 7,
                    "break_type": "Dinner",
                    "break_start_time": "02:00:00",
                    "attendance_date": "2025-06-10T00:00:00.000Z",
                    "break_duration_minutes": 12,
                }
            ],
        },
    )

    ongoing = HttpBreakRepository(conn).get_ongoing(context)

    assert ongoing[0].category == BreakCategory.DINNER
    assert ongoing[0].start_clock == time(2, 0)
    assert ongoing[0].attendance_date == date(2025, 6, 10)
    assert ongoing[0].break_id == "7"


def test_unsuccessful_envelope_is_a_network_error(conn, backend, context):
    backend.reply("GET", "/attendance/today-breaks/EMP-001", 200, {"success": False, "message": "nope"})

    with pytest.raises(NetworkError, match="nope"):
        HttpBreakRepository(conn).get_today_breaks(context)


def test_malformed_break_rule_is_skipped(conn, backend, caplog):
    backend.reply(
        "GET",
        "/rules/break-rules",
        200,
        {"success": True, "data": [{"type": "smoke", "limit": 5}, {"type": "lunch", "limit": 30}]},
    )

    with caplog.at_level("WARNING"):
        rules = HttpBreakRepository(conn).get_rules()

    assert [(r.category, r.limit_minutes) for r in rules] == [(BreakCategory.SMOKE, 5)]
    assert any("lunch" in r.getMessage() for r in caplog.records)


def test_clock_with_fractional_seconds_is_anchored_to_work_date():
    record = record_from_api(
        {"attendance_date": "2025-06-09", "status": "present", "check_in_time": "21:00:00.000", "check_out_time": "05:30:00.000"},
        employee_id="EMP-001",
    )

    assert record.check_in_time == datetime(2025, 6, 9, 21, 0)
    assert record.check_out_time == datetime(2025, 6, 10, 5, 30)


def test_connection_instances_are_kept_per_prefix():
    first = ApiConnection.get_instance(ApiConfig(base_url="http://hr-a.test"))
    again = ApiConnection.get_instance(ApiConfig(base_url="http://hr-a.test/"))
    other = ApiConnection.get_instance(ApiConfig(base_url="http://hr-b.test"))

    assert first is again
    assert other is not first
    assert other.url("/attendance/check-in") == "http://hr-b.test/api/v1/attendance/check-in"
