from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from ..common.logging import get_logger
from ..core.enums import NotificationType

logger = get_logger(__name__)


@dataclass(frozen=True)
class Notification:
    user_id: str
    title: str
    message: str
    type: NotificationType
    related_id: Optional[str] = None


class NotificationSink(Protocol):
    def notify(self, notification: Notification) -> None:
        """Fire-and-forget delivery. May raise NotificationDeliveryError."""

        raise NotImplementedError


class LoggingNotificationSink:
    """Sink that only records the event in the log (dev / no notification table)."""

    def notify(self, notification: Notification) -> None:
        logger.info(
            "notification",
            user_id=notification.user_id,
            title=notification.title,
            type=notification.type.value,
            related_id=notification.related_id,
        )
