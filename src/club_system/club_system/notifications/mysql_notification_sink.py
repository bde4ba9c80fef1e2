from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..common.clock import Clock, SystemClock
from ..core.exceptions import NotificationDeliveryError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor
from .sink import Notification, NotificationSink


class MySQLNotificationSink(NotificationSink):
    def __init__(self, conn_factory: DatabaseConnection, *, clock: Optional[Clock] = None):
        self._conn_factory = conn_factory
        self._clock = clock or SystemClock()

    def notify(self, notification: Notification) -> None:
        created_at: datetime = self._clock.now()
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO notifications(user_id, title, message, type, related_id, is_read, created_at)
                    VALUES(%s,%s,%s,%s,%s,0,%s)
                    """,
                    (
                        notification.user_id,
                        notification.title,
                        notification.message,
                        notification.type.value,
                        notification.related_id,
                        created_at,
                    ),
                )
        except Exception as exc:
            raise NotificationDeliveryError(str(exc)) from exc
