from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import admin_required, int_arg, json_body
from ..core.constants import DEFAULT_EMAIL_LOG_LIMIT
from ..container import Container


def register(app: Flask, container: Container) -> None:
    admin = admin_required(container)
    service = container.system_service

    @app.route("/api/system/status", methods=["GET"], endpoint="system_status")
    def system_status():
        return jsonify(service.status().as_dict())

    @app.route("/api/system/initialize", methods=["POST"], endpoint="initialize_system")
    def initialize_system():
        data = json_body()
        admin_id = service.initialize_system(
            email=data.get("email", ""),
            password=data.get("password", ""),
            display_name=data.get("display_name", ""),
            department=data.get("department"),
            position=data.get("position"),
        )
        return jsonify({"admin_id": admin_id}), 201

    @app.route("/api/system/stats", methods=["GET"], endpoint="system_stats")
    @admin
    def system_stats():
        return jsonify(service.get_system_stats())

    @app.route("/api/system/email-logs", methods=["GET"], endpoint="email_logs")
    @admin
    def email_logs():
        limit = int_arg("limit") or DEFAULT_EMAIL_LOG_LIMIT
        return jsonify([e.as_dict() for e in container.notification_service.get_email_logs(limit)])
