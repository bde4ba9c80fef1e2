from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from typing import Any, Mapping

from ..common.datetime_utils import parse_iso_date
from ..common.validators import require_int_range
from ..core import constants
from ..core.enums import SessionId
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class SessionStart:
    hour: int
    minute: int

    def on(self, day: date) -> datetime:
        return datetime(day.year, day.month, day.day, self.hour, self.minute)

    def to_dict(self) -> dict:
        return {"hour": self.hour, "minute": self.minute}

    @classmethod
    def from_dict(cls, data: Any, field_name: str) -> "SessionStart":
        if not isinstance(data, Mapping):
            raise ValidationError(f"{field_name} 必须包含 hour 和 minute")
        return cls(
            hour=require_int_range(data.get("hour"), f"{field_name}.hour", 0, 23),
            minute=require_int_range(data.get("minute"), f"{field_name}.minute", 0, 59),
        )


@dataclass(frozen=True)
class AttendanceConfig:
    """Weekly attendance schedule (点名配置).

    day_of_week uses 0=Sunday ... 6=Saturday. A session whose start minute plus
    duration passes the hour boundary rolls over into the next hour.
    """

    day_of_week: int
    session1_start: SessionStart
    session1_duration_minutes: int
    session2_start: SessionStart
    session2_duration_minutes: int
    week_start_date: date
    debug_mode: bool = False

    @classmethod
    def default(cls) -> "AttendanceConfig":
        return cls(
            day_of_week=constants.DEFAULT_DAY_OF_WEEK,
            session1_start=SessionStart(*constants.DEFAULT_SESSION1_START),
            session1_duration_minutes=constants.DEFAULT_SESSION1_DURATION,
            session2_start=SessionStart(*constants.DEFAULT_SESSION2_START),
            session2_duration_minutes=constants.DEFAULT_SESSION2_DURATION,
            week_start_date=constants.DEFAULT_WEEK_START_DATE,
            debug_mode=False,
        )

    def session_start(self, session_id: SessionId) -> SessionStart:
        return self.session1_start if session_id == SessionId.FIRST else self.session2_start

    def session_duration(self, session_id: SessionId) -> int:
        if session_id == SessionId.FIRST:
            return self.session1_duration_minutes
        return self.session2_duration_minutes

    def window(self, session_id: SessionId, day: date) -> tuple[datetime, datetime]:
        """[start, end) of a session on the given calendar date."""
        start = self.session_start(session_id).on(day)
        return start, start + timedelta(minutes=self.session_duration(session_id))

    def to_dict(self) -> dict:
        return {
            "dayOfWeek": self.day_of_week,
            "session1Start": self.session1_start.to_dict(),
            "session1Duration": self.session1_duration_minutes,
            "session2Start": self.session2_start.to_dict(),
            "session2Duration": self.session2_duration_minutes,
            "weekStartDate": self.week_start_date.isoformat(),
            "debugMode": self.debug_mode,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AttendanceConfig":
        missing = [
            key
            for key in ("dayOfWeek", "session1Start", "session1Duration", "session2Start", "session2Duration", "weekStartDate")
            if key not in data
        ]
        if missing:
            raise ValidationError(f"点名配置缺少字段: {', '.join(missing)}")

        debug = data.get("debugMode", False)
        if not isinstance(debug, bool):
            raise ValidationError("debugMode 必须是布尔值")

        return cls(
            day_of_week=require_int_range(data["dayOfWeek"], "dayOfWeek", 0, 6),
            session1_start=SessionStart.from_dict(data["session1Start"], "session1Start"),
            session1_duration_minutes=require_int_range(
                data["session1Duration"], "session1Duration", 1, constants.MAX_SESSION_DURATION_MINUTES
            ),
            session2_start=SessionStart.from_dict(data["session2Start"], "session2Start"),
            session2_duration_minutes=require_int_range(
                data["session2Duration"], "session2Duration", 1, constants.MAX_SESSION_DURATION_MINUTES
            ),
            week_start_date=parse_iso_date(data["weekStartDate"]),
            debug_mode=debug,
        )

    def merged(self, patch: Mapping[str, Any]) -> "AttendanceConfig":
        """Apply a partial update (only the keys present in patch change)."""
        unknown = set(patch) - set(self.to_dict())
        if unknown:
            raise ValidationError(f"未知的配置字段: {', '.join(sorted(unknown))}")
        return AttendanceConfig.from_dict({**self.to_dict(), **patch})

    def with_debug_mode(self, enabled: bool) -> "AttendanceConfig":
        return replace(self, debug_mode=bool(enabled))
