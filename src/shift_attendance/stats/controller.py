from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import now_local
from ..common.responses import error_response, ok
from ..common.validators import require_positive_int
from ..common.workdate import resolve_work_date, work_date_range
from ..core.exceptions import DomainError, ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    aggregator = container.aggregator

    def _year_month():
        today = resolve_work_date(now_local())
        year = require_positive_int(request.args.get("year") or today.year, "year")
        month = require_positive_int(request.args.get("month") or today.month, "month")
        if month > 12:
            raise ValidationError("month must be between 1 and 12")
        return year, month

    @app.route("/stats/month", methods=["GET"], endpoint="stats_month")
    def stats_month():
        try:
            year, month = _year_month()
        except DomainError as e:
            return error_response(e)

        with container.lock:
            records = aggregator.load_month(container.context, year=year, month=month)
            rows = [aggregator.compute_daily_status(d) for d in work_date_range(year, month)]
            return ok(
                {
                    "year": year,
                    "month": month,
                    "stats": aggregator.compute_stats(records),
                    "days": rows,
                    "break_minutes": aggregator.month_break_minutes(),
                }
            )

    @app.route("/stats/summary", methods=["GET"], endpoint="stats_summary")
    def stats_summary():
        with container.lock:
            return ok(
                {
                    "summary": aggregator.compute_working_hours_summary(),
                    "today_break_minutes": aggregator.today_break_minutes(),
                }
            )

    @app.route("/overtime", methods=["GET"], endpoint="overtime_debt")
    def overtime_debt():
        with container.lock:
            debt = container.debt_ledger.snapshot()
            return ok(
                {
                    "debt": debt,
                    "total_debt_minutes": debt.total_debt_minutes,
                    "net_debt_minutes": debt.net_debt_minutes,
                }
            )
