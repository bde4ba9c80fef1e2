from __future__ import annotations

from dataclasses import dataclass

from .config_model import AttendanceConfig
from .strategies.base import WindowStrategy
from .strategies.debug_strategy import DebugWindowStrategy
from .strategies.scheduled_strategy import ScheduledWindowStrategy


@dataclass
class AttendanceWindowFactory:
    """Factory Pattern: choose the window strategy for a config."""

    def for_config(self, config: AttendanceConfig) -> WindowStrategy:
        if config.debug_mode:
            return DebugWindowStrategy()
        return ScheduledWindowStrategy()
