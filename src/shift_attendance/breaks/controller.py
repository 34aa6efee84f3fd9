from __future__ import annotations

from flask import Flask

from ..common.responses import error_response, ok
from ..core.exceptions import DomainError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    ledger = container.break_ledger

    @app.route("/breaks", methods=["GET"], endpoint="breaks_list")
    def breaks_list():
        with container.lock:
            return ok(
                {
                    "entries": list(ledger.entries.values()),
                    "today": ledger.today_breaks,
                    "on_break": ledger.is_on_break(),
                    "summary": ledger.summary(),
                }
            )

    @app.route("/breaks/<category>/start", methods=["POST"], endpoint="breaks_start")
    def breaks_start(category: str):
        try:
            with container.lock:
                entry = ledger.start_break(container.context, category)
        except DomainError as e:
            return error_response(e)
        if entry is None:
            return ok(ledger.entry(category), message="Break already active")
        return ok(entry, status=201, message=f"{entry.name} break started")

    @app.route("/breaks/<category>/end", methods=["POST"], endpoint="breaks_end")
    def breaks_end(category: str):
        try:
            with container.lock:
                outcome = ledger.end_break(container.context, category)
        except DomainError as e:
            return error_response(e)
        if outcome is None:
            return ok(None, message="Break is not active")
        return ok(outcome, message="Break ended")
