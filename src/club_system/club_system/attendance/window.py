"""Attendance window calculator.

Pure: depends only on the config and the instant passed in, never raises for
an ineligible instant (the verdict carries the reason instead).
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..core.constants import DAY_NAMES
from ..core.enums import SessionId
from .config_model import AttendanceConfig
from .factory import AttendanceWindowFactory
from .model import Eligibility

_factory = AttendanceWindowFactory()


def compute_eligibility(
    config: AttendanceConfig,
    now: datetime,
    *,
    factory: Optional[AttendanceWindowFactory] = None,
) -> Eligibility:
    strategy = (factory or _factory).for_config(config)
    return strategy.evaluate(config=config, now=now)


def describe_schedule(config: AttendanceConfig) -> str:
    """e.g. '每周二 15:20-15:25 或 16:35-16:40'."""
    day = config.week_start_date  # any date; only the clock times are rendered
    parts = []
    for session_id in (SessionId.FIRST, SessionId.SECOND):
        start, end = config.window(session_id, day)
        parts.append(f"{start:%H:%M}-{end:%H:%M}")
    return f"每{DAY_NAMES[config.day_of_week]} {parts[0]} 或 {parts[1]}"
