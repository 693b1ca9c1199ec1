from __future__ import annotations

from dataclasses import dataclass, field
import itertools
import logging
from typing import Callable, Literal

logger = logging.getLogger(__name__)

NotificationKind = Literal["success", "error", "warning", "info"]

DEFAULT_DURATION_MS = {"success": 3000, "error": 5000, "warning": 4000, "info": 3000}


@dataclass(frozen=True)
class Notification:
    id: int
    kind: NotificationKind
    message: str
    duration_ms: int = field(default=3000)


class NotificationCenter:
    """
    Fan-out of user notifications to subscribers.

    One instance is created by whoever owns the display and handed to the
    code that needs to notify; nothing is registered globally.
    """

    def __init__(self) -> None:
        self._subscribers: list[Callable[[Notification], None]] = []
        self._ids = itertools.count(1)

    def subscribe(self, callback: Callable[[Notification], None]) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def notify(self, kind: NotificationKind, message: str, duration_ms: int | None = None) -> Notification:
        notification = Notification(
            id=next(self._ids),
            kind=kind,
            message=message,
            duration_ms=DEFAULT_DURATION_MS[kind] if duration_ms is None else duration_ms,
        )
        if not self._subscribers:
            logger.warning("Notification dropped, no subscriber", extra={"kind": kind})

        for callback in list(self._subscribers):
            try:
                callback(notification)
            except Exception:
                logger.exception("Notification subscriber failed", extra={"kind": kind})
        return notification

    def success(self, message: str) -> Notification:
        return self.notify("success", message)

    def error(self, message: str) -> Notification:
        return self.notify("error", message)

    def warning(self, message: str) -> Notification:
        return self.notify("warning", message)

    def info(self, message: str) -> Notification:
        return self.notify("info", message)
