from __future__ import annotations

import json
from typing import Optional

from ..core.constants import ATTENDANCE_CONFIG_KEY
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .config_model import AttendanceConfig
from .config_repository import AttendanceConfigRepository


class MySQLAttendanceConfigRepository(AttendanceConfigRepository):
    """Config stored as JSON in app_settings under one well-known key."""

    def __init__(self, conn_factory: DatabaseConnection, *, key: str = ATTENDANCE_CONFIG_KEY):
        self._conn_factory = conn_factory
        self._key = key

    def load(self) -> Optional[AttendanceConfig]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT setting_value FROM app_settings WHERE setting_key=%s", (self._key,))
            r = fetchone(cur)
            if not r:
                return None
            return AttendanceConfig.from_dict(json.loads(r["setting_value"]))

    def save(self, config: AttendanceConfig) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO app_settings(setting_key, setting_value)
                VALUES(%s,%s)
                ON DUPLICATE KEY UPDATE setting_value=VALUES(setting_value)
                """,
                (self._key, json.dumps(config.to_dict(), ensure_ascii=False)),
            )
