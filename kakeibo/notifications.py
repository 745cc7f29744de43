"""User-facing notifications emitted by the core for the presentation layer."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

__all__ = ["SEVERITIES", "Notification", "Notifier"]

logger = logging.getLogger(__name__)

SEVERITIES = ("success", "error", "info", "warning")


@dataclass(frozen=True)
class Notification:
    message: str
    severity: str = "info"
    offers_undo: bool = False
    action: Optional[Callable[[], Any]] = None

    def invoke(self) -> Any:
        """Run the attached action (the undo of a delete), if any."""
        if self.action is None:
            return None
        return self.action()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "severity": self.severity,
            "offersUndo": self.offers_undo,
        }


class Notifier:
    """Collects notifications and forwards them to subscribed listeners."""

    def __init__(self) -> None:
        self._pending: List[Notification] = []
        self._listeners: List[Callable[[Notification], None]] = []

    def subscribe(self, listener: Callable[[Notification], None]) -> None:
        self._listeners.append(listener)

    def notify(
        self,
        message: str,
        severity: str = "info",
        *,
        offers_undo: bool = False,
        action: Optional[Callable[[], Any]] = None,
    ) -> Notification:
        if severity not in SEVERITIES:
            raise ValueError(f"severity must be one of: {', '.join(SEVERITIES)}")
        notification = Notification(message, severity, offers_undo, action)
        self._pending.append(notification)
        logger.debug("notify[%s] %s", severity, message)
        for listener in list(self._listeners):
            listener(notification)
        return notification

    def drain(self) -> List[Notification]:
        """Return pending notifications and forget them."""
        pending, self._pending = self._pending, []
        return pending

    @property
    def pending(self) -> List[Notification]:
        return list(self._pending)
