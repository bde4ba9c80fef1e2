from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional

from ..common.clock import Clock, SystemClock
from ..common.logging import get_logger
from ..core.exceptions import INELIGIBILITY_MESSAGES, ValidationError
from .config_model import AttendanceConfig
from .config_repository import AttendanceConfigRepository
from .factory import AttendanceWindowFactory
from .model import Eligibility
from .window import compute_eligibility, describe_schedule

logger = get_logger(__name__)


class AttendanceConfigService:
    """Use case: read/update the weekly attendance schedule and debug switch.

    The config is loaded from the store on every call and passed explicitly to
    the window calculator; nothing is cached between requests.
    """

    def __init__(
        self,
        configs: AttendanceConfigRepository,
        *,
        clock: Optional[Clock] = None,
        factory: Optional[AttendanceWindowFactory] = None,
    ):
        self._configs = configs
        self._clock = clock or SystemClock()
        self._factory = factory or AttendanceWindowFactory()

    def get_config(self) -> AttendanceConfig:
        return self._configs.load() or AttendanceConfig.default()

    def update_config(self, patch: Mapping[str, Any]) -> AttendanceConfig:
        if not isinstance(patch, Mapping) or not patch:
            raise ValidationError("没有需要更新的配置")
        config = self.get_config().merged(patch)
        self._configs.save(config)
        logger.info("attendance.config_updated", fields=sorted(patch), config=config.to_dict())
        return config

    def set_debug_mode(self, enabled: bool) -> AttendanceConfig:
        config = self.get_config().with_debug_mode(enabled)
        self._configs.save(config)
        logger.info("attendance.debug_toggled", debug_mode=config.debug_mode)
        return config

    def toggle_debug_mode(self) -> AttendanceConfig:
        return self.set_debug_mode(not self.get_config().debug_mode)

    def eligibility(self, now: Optional[datetime] = None) -> tuple[AttendanceConfig, Eligibility]:
        config = self.get_config()
        now = now or self._clock.now()
        return config, compute_eligibility(config, now, factory=self._factory)

    def debug_status(self) -> dict:
        config = self.get_config()
        return {"debugMode": config.debug_mode, "config": config.to_dict()}

    def current_status(self, now: Optional[datetime] = None) -> dict:
        config, verdict = self.eligibility(now)
        return {
            "isAttendanceOpen": verdict.eligible,
            "session": int(verdict.session_id) if verdict.session_id else None,
            "minutesRemaining": verdict.minutes_remaining,
            "weekNumber": verdict.week_number,
            "debugMode": config.debug_mode,
            "reason": verdict.reason.value if verdict.reason else None,
            "message": _status_message(config, verdict),
            "config": config.to_dict(),
        }


def _status_message(config: AttendanceConfig, verdict: Eligibility) -> str:
    if verdict.debug:
        return "调试模式：点名已开启"
    if verdict.eligible:
        return f"第 {int(verdict.session_id)} 节点名进行中，剩余 {verdict.minutes_remaining} 分钟"
    return f"{INELIGIBILITY_MESSAGES[verdict.reason]}（点名时间：{describe_schedule(config)}）"
