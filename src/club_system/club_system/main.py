from __future__ import annotations

import importlib
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .activities.controller import register as register_activities
from .attendance.controller import register as register_attendance
from .common.http import register_error_handlers
from .common.logging import get_logger, setup_logging
from .container import Container, build_container
from .database.bootstrap import apply_schema, list_tables
from .signups.controller import register as register_signups

logger = get_logger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.json.ensure_ascii = False

    setup_logging(
        json_output=bool(getattr(settings, "LOG_JSON", False)),
        log_level=str(getattr(settings, "LOG_LEVEL", "INFO")),
    )
    logger.info(
        "app.starting",
        settings=settings_module,
        db=f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}",
    )

    if container is None:
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
            apply_schema(db_config, schema_path=schema_path)
            logger.info("app.schema_ready", tables=len(list_tables(db_config)))
        container = build_container(db_config=db_config)

    register_error_handlers(app)
    register_activities(app, container)
    register_signups(app, container)
    register_attendance(app, container)

    return app
