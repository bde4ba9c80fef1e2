from __future__ import annotations

import re
from typing import Optional

from ..core.exceptions import ValidationError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name}不能为空")
    return str(value).strip()


def optional_text(value: Optional[str]) -> Optional[str]:
    text = (value or "").strip()
    return text or None


def require_email(value: Optional[str], field_name: str = "邮箱") -> str:
    email = require_non_empty(value, field_name).lower()
    if not _EMAIL_RE.match(email):
        raise ValidationError(f"{field_name}格式不正确")
    return email


def require_int_range(value, field_name: str, min_value: int, max_value: int) -> int:
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f"{field_name}必须是整数")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name}必须是整数")
    if isinstance(value, bool) or not (min_value <= number <= max_value):
        raise ValidationError(f"{field_name}必须在 {min_value}-{max_value} 之间")
    return number
