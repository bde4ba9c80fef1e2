"""Example: drive the service layer directly (no Flask).

Controllers are thin; the business rules live in the services.
"""

import importlib

from config import get_settings_module

from src.club_system.club_system.common.logging import setup_logging
from src.club_system.club_system.container import build_container


def main():
    setup_logging()
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)
    print(container.attendance_config_service.current_status())
    print(container.activity_service.check_admission(1))


if __name__ == "__main__":
    main()
