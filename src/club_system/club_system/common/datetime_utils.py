from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"日期格式不正确: {value!r} (YYYY-MM-DD)")


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO timestamp as naive local wall-clock time.

    A trailing 'Z' or offset is dropped: all times are the club's local time.
    """
    if value is None or not str(value).strip():
        return None
    raw = str(value).strip()
    if raw.endswith("Z"):
        raw = raw[:-1]
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        raise ValidationError(f"时间格式不正确: {value!r}")
    return parsed.replace(tzinfo=None)


def day_of_week(d: date) -> int:
    """0=Sunday ... 6=Saturday."""
    return d.isoweekday() % 7


def format_iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat(timespec="seconds") if value else None


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()
