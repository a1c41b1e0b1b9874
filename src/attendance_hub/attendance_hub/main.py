from __future__ import annotations

import importlib
from pathlib import Path

import structlog
from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .common.web import register_error_handlers
from .core.logging import setup_logging
from .database.bootstrap import apply_schema, list_tables

from .container import build_container
from .attendance.controller import register as register_attendance
from .reports.controller import register as register_reports
from .requests.controller import register as register_requests
from .settings.controller import register as register_settings
from .system.controller import register as register_system
from .users.controller import register as register_users

logger = structlog.get_logger(__name__)


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    setup_logging(getattr(settings, "LOG_LEVEL", None))

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["SESSION_DAYS"] = int(getattr(settings, "SESSION_DAYS", 7))

    logger.info(
        "app_configuring",
        settings=settings_module,
        db=f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}",
    )

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
        apply_schema(db_config, schema_path=schema_path)
        logger.info("schema_ready", tables=len(list_tables(db_config)))

    container = build_container(
        db_config=db_config,
        mail_config={
            "url": getattr(settings, "MAIL_RELAY_URL", ""),
            "sender_email": getattr(settings, "MAIL_SENDER_EMAIL", ""),
            "sender_name": getattr(settings, "MAIL_SENDER_NAME", "Attendance Hub"),
            "timeout": getattr(settings, "NOTIFICATION_TIMEOUT_SECONDS", 30.0),
        },
    )
    app.extensions["attendance_hub"] = container

    register_error_handlers(app)
    register_system(app, container)
    register_users(app, container)
    register_attendance(app, container)
    register_requests(app, container)
    register_settings(app, container)
    register_reports(app, container)

    return app
