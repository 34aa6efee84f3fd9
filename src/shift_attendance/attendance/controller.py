from __future__ import annotations

from flask import Flask

from ..common.responses import error_response, ok
from ..core.exceptions import DomainError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    session = container.session_tracker

    @app.route("/attendance/status", methods=["GET"], endpoint="attendance_status")
    def attendance_status():
        with container.lock:
            return ok(
                {
                    "state": session.state,
                    "today": session.today_record,
                    "can_check_in": session.can_check_in(),
                    "can_check_out": session.can_check_out(),
                }
            )

    @app.route("/attendance/check-in", methods=["POST"], endpoint="attendance_check_in")
    def attendance_check_in():
        try:
            with container.lock:
                result = session.check_in(container.context)
        except DomainError as e:
            return error_response(e)
        if result.already_checked_in:
            return ok(result, message="Already checked in")
        return ok(result, status=201, message="Late check-in" if result.is_late else "Checked in")

    @app.route("/attendance/check-out", methods=["POST"], endpoint="attendance_check_out")
    def attendance_check_out():
        try:
            with container.lock:
                result = session.check_out(container.context)
        except DomainError as e:
            return error_response(e)
        return ok(result, message="Checked out")
