from __future__ import annotations

from typing import Optional, Protocol

from .config_model import AttendanceConfig


class AttendanceConfigRepository(Protocol):
    def load(self) -> Optional[AttendanceConfig]:
        """Stored config, or None before the first save."""

        raise NotImplementedError

    def save(self, config: AttendanceConfig) -> None:
        raise NotImplementedError
