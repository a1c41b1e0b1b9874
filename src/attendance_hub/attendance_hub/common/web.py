"""Flask glue shared by the JSON controllers: session guard, error mapping, arg parsing."""

from __future__ import annotations

from datetime import date
from functools import wraps
from typing import Any, Optional

import structlog
from flask import Flask, g, jsonify, request, session

from ..access.principal import Principal
from ..core.exceptions import (
    AccountDisabledError,
    AuthenticationError,
    AuthorizationError,
    ClockStateError,
    ConcurrentUpdateError,
    DomainError,
    DuplicateNameError,
    InfrastructureError,
    NotFoundError,
    RequestAlreadyReviewedError,
    ValidationError,
)
from .datetime_utils import parse_iso_date

logger = structlog.get_logger(__name__)

# First match wins, so subclasses come before their bases.
_STATUS_BY_ERROR: list[tuple[type, int]] = [
    (AccountDisabledError, 403),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (DuplicateNameError, 409),
    (ClockStateError, 409),
    (RequestAlreadyReviewedError, 409),
    (ConcurrentUpdateError, 409),
    (ValidationError, 400),
]


def status_for(exc: Exception) -> int:
    for kind, status in _STATUS_BY_ERROR:
        if isinstance(exc, kind):
            return status
    return 400


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def _domain_error(exc: DomainError):
        return jsonify({"error": str(exc), "code": type(exc).__name__}), status_for(exc)

    @app.errorhandler(InfrastructureError)
    def _infrastructure_error(exc: InfrastructureError):
        logger.error("infrastructure_error", path=request.path, error=str(exc))
        if app.config.get("DEBUG"):
            return jsonify({"error": str(exc)}), 500
        return jsonify({"error": "Internal server error"}), 500


def login_required(container):
    """Re-resolves the session user on every call; a deactivated account loses its session."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return jsonify({"error": "Please sign in to continue"}), 401
            try:
                g.session_user = container.auth_service.resolve_session(int(session["user_id"]))
            except AuthenticationError:
                session.clear()
                raise
            return view(*args, **kwargs)

        return wrapper

    return decorator


def admin_required(container):
    def decorator(view):
        @wraps(view)
        @login_required(container)
        def wrapper(*args, **kwargs):
            if not current_principal().is_admin:
                return jsonify({"error": "Administrator access required"}), 403
            return view(*args, **kwargs)

        return wrapper

    return decorator


def current_principal() -> Principal:
    return g.session_user.principal


def json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def date_arg(name: str) -> Optional[date]:
    raw = (request.args.get(name) or "").strip()
    if not raw:
        return None
    try:
        return parse_iso_date(raw)
    except ValueError:
        raise ValidationError(f"{name} must be YYYY-MM-DD")


def int_arg(name: str) -> Optional[int]:
    raw = (request.args.get(name) or "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")


def bool_arg(name: str) -> bool:
    return (request.args.get(name) or "").strip().lower() in {"1", "true", "yes"}
