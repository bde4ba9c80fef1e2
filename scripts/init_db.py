from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.club_system.club_system.common.logging import get_logger, setup_logging
from src.club_system.club_system.database.bootstrap import apply_schema, list_tables


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    setup_logging(log_level=str(getattr(settings, "LOG_LEVEL", "INFO")))
    logger = get_logger("init_db")

    db_config = dict(settings.DB_CONFIG)
    schema_path = REPO_ROOT / "database" / "schema.sql"
    apply_schema(db_config, schema_path=schema_path)
    tables = list_tables(db_config)
    logger.info(
        "init_db.done",
        target=f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}",
        tables=len(tables),
    )


if __name__ == "__main__":
    main()
