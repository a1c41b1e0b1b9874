from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import current_principal, int_arg, json_body, login_required
from ..core.enums import RequestKind
from ..core.exceptions import NotFoundError
from ..container import Container


def _kind(value: str) -> RequestKind:
    try:
        return RequestKind(value)
    except ValueError:
        raise NotFoundError("Unknown request kind")


def register(app: Flask, container: Container) -> None:
    login = login_required(container)
    service = container.request_service

    @app.route("/api/requests/leave", methods=["POST"], endpoint="submit_leave")
    @login
    def submit_leave():
        principal = current_principal()
        data = json_body()
        created = service.submit_leave(
            principal.user_id,
            leave_type=data.get("leave_type", ""),
            start_date=data.get("start_date"),
            end_date=data.get("end_date"),
            reason=data.get("reason", ""),
            principal=principal,
        )
        return jsonify(created.as_dict()), 201

    @app.route("/api/requests/overtime", methods=["POST"], endpoint="submit_overtime")
    @login
    def submit_overtime():
        principal = current_principal()
        data = json_body()
        created = service.submit_overtime(
            principal.user_id,
            work_date=data.get("date"),
            start_time=data.get("start_time"),
            end_time=data.get("end_time"),
            reason=data.get("reason", ""),
            principal=principal,
        )
        return jsonify(created.as_dict()), 201

    @app.route("/api/requests/<kind>", methods=["GET"], endpoint="list_requests")
    @login
    def list_requests(kind: str):
        rows = service.list_visible(
            current_principal(),
            _kind(kind),
            user_id=int_arg("user_id"),
            status=request.args.get("status"),
            limit=int_arg("limit"),
        )
        return jsonify([r.as_dict() for r in rows])

    @app.route("/api/requests/<kind>/<int:request_id>", methods=["GET"], endpoint="get_request")
    @login
    def get_request(kind: str, request_id: int):
        return jsonify(service.get_request(current_principal(), _kind(kind), request_id).as_dict())

    @app.route("/api/requests/<kind>/<int:request_id>/<decision>", methods=["POST"], endpoint="review_request")
    @login
    def review_request(kind: str, request_id: int, decision: str):
        actions = {
            (RequestKind.LEAVE, "approve"): service.approve_leave,
            (RequestKind.LEAVE, "reject"): service.reject_leave,
            (RequestKind.OVERTIME, "approve"): service.approve_overtime,
            (RequestKind.OVERTIME, "reject"): service.reject_overtime,
        }
        action = actions.get((_kind(kind), decision))
        if action is None:
            raise NotFoundError("Unknown review action")

        reviewed = action(request_id, current_principal(), json_body().get("comment", ""))
        return jsonify(reviewed.as_dict())
