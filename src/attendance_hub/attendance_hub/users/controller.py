from __future__ import annotations

from datetime import timedelta

import structlog
from flask import Flask, jsonify, session

from ..common.web import bool_arg, current_principal, json_body, login_required
from ..core.constants import DEFAULT_SESSION_DAYS
from ..core.exceptions import AuthenticationError
from ..container import Container

logger = structlog.get_logger(__name__)


def register(app: Flask, container: Container) -> None:
    login = login_required(container)

    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login_view():
        data = json_body()
        try:
            s_user = container.auth_service.authenticate(data.get("email", ""), data.get("password", ""))
        except AuthenticationError:
            session.clear()
            raise

        session.permanent = bool(data.get("remember_me"))
        app.permanent_session_lifetime = timedelta(days=int(app.config.get("SESSION_DAYS", DEFAULT_SESSION_DAYS)))
        session["user_id"] = s_user.user_id
        session["role"] = s_user.role.value

        logger.info("signed_in", user_id=s_user.user_id)
        return jsonify({"user_id": s_user.user_id, "display_name": s_user.display_name, "role": s_user.role.value})

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"ok": True})

    @app.route("/api/auth/me", methods=["GET"], endpoint="me")
    @login
    def me():
        principal = current_principal()
        user = container.user_service.get_user(principal, principal.user_id)
        return jsonify(user.as_dict())

    @app.route("/api/users", methods=["GET"], endpoint="list_users")
    @login
    def list_users():
        users = container.user_service.list_users(current_principal(), active_only=bool_arg("active_only"))
        return jsonify([u.as_dict() for u in users])

    @app.route("/api/users", methods=["POST"], endpoint="create_user")
    @login
    def create_user():
        data = json_body()
        fields = {
            k: data[k]
            for k in ("email", "password", "display_name", "role", "department", "position", "work_start", "work_end")
            if k in data
        }
        user_id = container.user_service.create_user(current_principal(), **fields)
        user = container.user_service.get_user(current_principal(), user_id)
        return jsonify(user.as_dict()), 201

    @app.route("/api/users/<int:user_id>", methods=["GET"], endpoint="get_user")
    @login
    def get_user(user_id: int):
        return jsonify(container.user_service.get_user(current_principal(), user_id).as_dict())

    @app.route("/api/users/<int:user_id>", methods=["PATCH"], endpoint="update_user")
    @login
    def update_user(user_id: int):
        user = container.user_service.update_user(current_principal(), user_id, json_body())
        return jsonify(user.as_dict())

    @app.route("/api/users/<int:user_id>/deactivate", methods=["POST"], endpoint="deactivate_user")
    @login
    def deactivate_user(user_id: int):
        container.user_service.deactivate_user(current_principal(), user_id)
        return jsonify({"ok": True})

    @app.route("/api/users/<int:user_id>/activate", methods=["POST"], endpoint="activate_user")
    @login
    def activate_user(user_id: int):
        container.user_service.activate_user(current_principal(), user_id)
        return jsonify({"ok": True})

