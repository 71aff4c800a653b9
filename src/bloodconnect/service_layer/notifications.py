"""User-facing status messages and navigation signals."""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

import config

logger = logging.getLogger(__name__)

KINDS = ("info", "error")
VIEWS = ("home", "donor", "find", "request", "admin")


@dataclass(frozen=True)
class Notification:
    text: str
    kind: str = "info"


class NotificationChannel:
    """
    Holds at most one message at a time.

    A new notification replaces the current one and restarts the expiry
    timer; once ttl seconds have passed the message is gone. The channel
    also carries the view the presentation layer should switch to.
    """

    def __init__(self, ttl: float = None, clock: Callable[[], float] = time.monotonic):
        self.ttl = config.get_notification_ttl() if ttl is None else ttl
        self.clock = clock
        self.view = "home"
        self._message = None  # type: Optional[Notification]
        self._expires_at = 0.0

    def notify(self, text: str, kind: str = "info") -> Notification:
        if kind not in KINDS:
            raise ValueError(f"Unknown notification kind: {kind}")
        self._message = Notification(text=text, kind=kind)
        self._expires_at = self.clock() + self.ttl
        if kind == "error":
            logger.warning(f"notify [{kind}]: {text}")
        else:
            logger.info(f"notify [{kind}]: {text}")
        return self._message

    @property
    def current(self) -> Optional[Notification]:
        if self._message is not None and self.clock() >= self._expires_at:
            self._message = None
        return self._message

    def navigate(self, view: str) -> None:
        if view not in VIEWS:
            raise ValueError(f"Unknown view: {view}")
        logger.debug(f"navigate to {view}")
        self.view = view
