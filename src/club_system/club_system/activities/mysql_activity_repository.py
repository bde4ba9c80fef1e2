from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, split_tags
from .model import Activity
from .repository import ActivityRepository


class MySQLActivityRepository(ActivityRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, activity_id: int) -> Optional[Activity]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT activity_id, title, signup_deadline, max_participants, current_participants, allowed_grades
                FROM activities
                WHERE activity_id=%s
                """,
                (int(activity_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Activity(
                activity_id=int(r["activity_id"]),
                title=r["title"],
                signup_deadline=r.get("signup_deadline"),
                max_participants=int(r.get("max_participants") or 0),
                current_participants=int(r.get("current_participants") or 0),
                allowed_grades=split_tags(r.get("allowed_grades")),
            )

    def try_reserve_seat(self, *, activity_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE activities
                SET current_participants = current_participants + 1
                WHERE activity_id=%s
                  AND (max_participants = 0 OR current_participants < max_participants)
                """,
                (int(activity_id),),
            )
            return cur.rowcount > 0

    def release_seat(self, *, activity_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE activities
                SET current_participants = current_participants - 1
                WHERE activity_id=%s AND current_participants > 0
                """,
                (int(activity_id),),
            )
            return cur.rowcount > 0
