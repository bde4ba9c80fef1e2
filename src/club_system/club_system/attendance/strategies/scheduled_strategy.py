from __future__ import annotations

from datetime import datetime

from ...common.datetime_utils import day_of_week
from ...core.enums import IneligibilityReason
from ..calendar import match_session, minutes_until, reported_week_number, week_number_for
from ..config_model import AttendanceConfig
from ..model import Eligibility
from .base import WindowStrategy


class ScheduledWindowStrategy(WindowStrategy):
    """Normal gating: term started, configured weekday, inside a session window."""

    def evaluate(self, *, config: AttendanceConfig, now: datetime) -> Eligibility:
        week_number = reported_week_number(config, now)

        if week_number_for(config.week_start_date, now.date()) < 1:
            return Eligibility(
                eligible=False,
                week_number=week_number,
                session_id=None,
                reason=IneligibilityReason.BEFORE_TERM_START,
            )

        if day_of_week(now.date()) != config.day_of_week:
            return Eligibility(
                eligible=False,
                week_number=week_number,
                session_id=None,
                reason=IneligibilityReason.WRONG_DAY,
            )

        matched = match_session(config, now)
        if matched is None:
            return Eligibility(
                eligible=False,
                week_number=week_number,
                session_id=None,
                reason=IneligibilityReason.OUTSIDE_WINDOW,
            )

        session_id, start, end = matched
        return Eligibility(
            eligible=True,
            week_number=week_number,
            session_id=session_id,
            window_start=start,
            window_end=end,
            minutes_remaining=minutes_until(now, end),
        )
