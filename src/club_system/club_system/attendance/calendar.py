from __future__ import annotations

import math
from datetime import date, datetime
from typing import Optional

from ..core.enums import SessionId
from .config_model import AttendanceConfig


def week_number_for(week_start_date: date, day: date) -> int:
    """floor(days since start / 7) + 1; zero or negative before the start date."""
    days_since_start = (day - week_start_date).days
    return days_since_start // 7 + 1


def reported_week_number(config: AttendanceConfig, now: datetime) -> int:
    return max(1, week_number_for(config.week_start_date, now.date()))


def match_session(config: AttendanceConfig, now: datetime) -> Optional[tuple[SessionId, datetime, datetime]]:
    """Session whose [start, end) window on now's date contains now.

    Session 1 is checked first, so it wins when misconfigured windows overlap.
    """
    for session_id in (SessionId.FIRST, SessionId.SECOND):
        start, end = config.window(session_id, now.date())
        if start <= now < end:
            return session_id, start, end
    return None


def minutes_until(now: datetime, end: datetime) -> int:
    return max(0, math.ceil((end - now).total_seconds() / 60))
