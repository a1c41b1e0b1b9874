from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import admin_required, bool_arg, current_principal, json_body, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    login = login_required(container)
    admin = admin_required(container)
    service = container.settings_service

    @app.route("/api/settings", methods=["GET"], endpoint="get_settings")
    @login
    def get_settings():
        return jsonify(service.get().as_dict())

    @app.route("/api/settings", methods=["PATCH"], endpoint="update_settings")
    @login
    def update_settings():
        patch = json_body()
        version = patch.pop("version", None)
        snapshot = service.update(current_principal(), patch, expected_version=version)
        return jsonify(snapshot.as_dict())

    @app.route("/api/settings/reset", methods=["POST"], endpoint="reset_settings")
    @login
    def reset_settings():
        return jsonify(service.reset(current_principal()).as_dict())

    # -------- Email --------
    @app.route("/api/settings/email", methods=["GET"], endpoint="get_email_settings")
    @admin
    def get_email_settings():
        return jsonify(service.email_settings())

    @app.route("/api/settings/email", methods=["PATCH"], endpoint="update_email_settings")
    @login
    def update_email_settings():
        return jsonify(service.update_email_settings(current_principal(), json_body()))

    @app.route("/api/settings/email/test", methods=["POST"], endpoint="send_test_email")
    @admin
    def send_test_email():
        result = container.notification_service.send_test_email(json_body().get("to"))
        return jsonify({"success": result.success, "message": result.message, "error": result.error})

    # -------- Departments --------
    @app.route("/api/settings/departments", methods=["GET"], endpoint="list_departments")
    @login
    def list_departments():
        return jsonify([d.as_dict() for d in service.list_departments()])

    @app.route("/api/settings/departments", methods=["POST"], endpoint="add_department")
    @login
    def add_department():
        data = json_body()
        dept = service.add_department(
            current_principal(),
            name=data.get("name", ""),
            description=data.get("description", ""),
        )
        return jsonify(dept.as_dict()), 201

    @app.route("/api/settings/departments/<department_id>", methods=["PATCH"], endpoint="update_department")
    @login
    def update_department(department_id: str):
        return jsonify(service.update_department(current_principal(), department_id, json_body()).as_dict())

    @app.route("/api/settings/departments/<department_id>", methods=["DELETE"], endpoint="delete_department")
    @login
    def delete_department(department_id: str):
        service.delete_department(current_principal(), department_id)
        return jsonify({"ok": True})

    # -------- Leave types --------
    @app.route("/api/settings/leave-types", methods=["GET"], endpoint="list_leave_types")
    @login
    def list_leave_types():
        return jsonify([t.as_dict() for t in service.list_leave_types(active_only=bool_arg("active_only"))])

    @app.route("/api/settings/leave-types", methods=["POST"], endpoint="add_leave_type")
    @login
    def add_leave_type():
        data = json_body()
        fields = {
            k: data[k]
            for k in ("description", "days_allowed", "require_approval", "color", "is_active")
            if k in data
        }
        leave_type = service.add_leave_type(current_principal(), name=data.get("name", ""), **fields)
        return jsonify(leave_type.as_dict()), 201

    @app.route("/api/settings/leave-types/<leave_type_id>", methods=["PATCH"], endpoint="update_leave_type")
    @login
    def update_leave_type(leave_type_id: str):
        return jsonify(service.update_leave_type(current_principal(), leave_type_id, json_body()).as_dict())

    @app.route("/api/settings/leave-types/<leave_type_id>", methods=["DELETE"], endpoint="delete_leave_type")
    @login
    def delete_leave_type(leave_type_id: str):
        service.delete_leave_type(current_principal(), leave_type_id)
        return jsonify({"ok": True})
