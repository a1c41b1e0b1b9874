"""Example: drive the service layer directly, without Flask.

Controllers stay thin; every rule lives in the services, so a script can use
them the same way the HTTP layer does.
"""

import importlib
from concurrent.futures import ThreadPoolExecutor

from dotenv import load_dotenv

from config import get_settings_module

from src.attendance_hub.attendance_hub.container import build_container
from src.attendance_hub.attendance_hub.core.logging import setup_logging


def main():
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    setup_logging(getattr(settings, "LOG_LEVEL", None))

    with ThreadPoolExecutor(max_workers=1) as executor:
        container = build_container(db_config=settings.DB_CONFIG, executor=executor)
        print(container.system_service.status().as_dict())
        print(container.system_service.get_system_stats())
        for leave_type in container.settings_service.list_leave_types(active_only=True):
            print(f"{leave_type.id:<10} {leave_type.name:<20} {leave_type.days_allowed} days")


if __name__ == "__main__":
    main()
