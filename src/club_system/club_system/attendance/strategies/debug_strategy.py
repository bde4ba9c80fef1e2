from __future__ import annotations

from datetime import datetime

from ...common.datetime_utils import day_of_week
from ...core.enums import SessionId
from ..calendar import match_session, minutes_until, reported_week_number
from ..config_model import AttendanceConfig
from ..model import Eligibility
from .base import WindowStrategy


class DebugWindowStrategy(WindowStrategy):
    """Debug mode: always open.

    On the configured weekday the session whose window contains now is
    reported; any other time falls back to session 1.
    """

    def evaluate(self, *, config: AttendanceConfig, now: datetime) -> Eligibility:
        week_number = reported_week_number(config, now)

        matched = match_session(config, now) if day_of_week(now.date()) == config.day_of_week else None
        if matched is None:
            return Eligibility(eligible=True, week_number=week_number, session_id=SessionId.FIRST, debug=True)

        session_id, start, end = matched
        return Eligibility(
            eligible=True,
            week_number=week_number,
            session_id=session_id,
            window_start=start,
            window_end=end,
            minutes_remaining=minutes_until(now, end),
            debug=True,
        )
