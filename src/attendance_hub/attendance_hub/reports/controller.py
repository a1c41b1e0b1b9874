from __future__ import annotations

from flask import Flask, jsonify

from ..common.datetime_utils import now_local
from ..common.web import current_principal, date_arg, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    login = login_required(container)

    @app.route("/api/reports", methods=["GET"], endpoint="reports")
    @login
    def reports():
        today = now_local().date()
        start = date_arg("start_date") or today.replace(day=1)
        end = date_arg("end_date") or today
        report = container.report_service.build_report(current_principal(), start=start, end=end)
        return jsonify({"start_date": start.isoformat(), "end_date": end.isoformat(), **report.as_dict()})
