from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import current_principal, date_arg, int_arg, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    login = login_required(container)

    @app.route("/api/attendance/clock-in", methods=["POST"], endpoint="clock_in")
    @login
    def clock_in():
        principal = current_principal()
        event = container.attendance_service.clock_in(principal.user_id, principal=principal)
        return jsonify(event.as_dict()), 201

    @app.route("/api/attendance/clock-out", methods=["POST"], endpoint="clock_out")
    @login
    def clock_out():
        principal = current_principal()
        event = container.attendance_service.clock_out(principal.user_id, principal=principal)
        return jsonify(event.as_dict()), 201

    @app.route("/api/attendance/today", methods=["GET"], endpoint="today_attendance")
    @login
    def today_attendance():
        events = container.attendance_service.today_for(current_principal(), user_id=int_arg("user_id"))
        return jsonify([e.as_dict() for e in events])

    @app.route("/api/attendance/state", methods=["GET"], endpoint="clock_state")
    @login
    def clock_state():
        status = container.attendance_service.get_clock_state(current_principal().user_id)
        return jsonify(
            {
                "state": status.state.value,
                "can_clock_in": status.can_clock_in,
                "can_clock_out": status.can_clock_out,
                "last_event": status.last_event.as_dict() if status.last_event else None,
            }
        )

    @app.route("/api/attendance/records", methods=["GET"], endpoint="attendance_records")
    @login
    def attendance_records():
        events = container.attendance_service.list_records(
            current_principal(),
            user_id=int_arg("user_id"),
            start_date=date_arg("start_date"),
            end_date=date_arg("end_date"),
        )
        return jsonify([e.as_dict() for e in events])
