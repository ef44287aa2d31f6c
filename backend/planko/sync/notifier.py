"""User-visible notifications raised by board operations."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    level: NotificationLevel
    message: str
    detail: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)


class Notifier:
    """Keeps recent notifications and forwards them to listeners."""

    def __init__(self, history_size: int = 50):
        self.history_size = history_size
        self.history: list[Notification] = []
        self._listeners: list[Callable[[Notification], None]] = []

    def register_handler(self, handler: Callable[[Notification], None]) -> None:
        self._listeners.append(handler)

    def success(self, message: str) -> Notification:
        return self._push(Notification(NotificationLevel.SUCCESS, message))

    def error(self, message: str, exc: Optional[Exception] = None) -> Notification:
        return self._push(
            Notification(NotificationLevel.ERROR, message, str(exc) if exc else None)
        )

    def _push(self, notification: Notification) -> Notification:
        if notification.level == NotificationLevel.ERROR:
            logger.warning(f"{notification.message}: {notification.detail or 'no detail'}")
        else:
            logger.info(notification.message)

        self.history.append(notification)
        del self.history[:-self.history_size]

        for handler in list(self._listeners):
            try:
                handler(notification)
            except Exception as e:
                logger.error(f"Notification handler error: {e}")

        return notification
