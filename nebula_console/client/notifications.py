"""Operator-visible notifications (the console's toasts)."""
from __future__ import annotations

import logging
from collections.abc import Callable

from nebula_console.core.contracts.console import Notification, NotificationType

log = logging.getLogger("notifications")

_LEVELS = {"info": logging.INFO, "success": logging.INFO, "warning": logging.WARNING, "error": logging.ERROR}


class Notifier:
    def __init__(self) -> None:
        self.items: list[Notification] = []
        self._listeners: list[Callable[[Notification], None]] = []

    def subscribe(self, listener: Callable[[Notification], None]) -> None:
        self._listeners.append(listener)

    def notify(self, type: NotificationType, message: str, title: str = "") -> Notification:
        n = Notification(type=type, message=message, title=title)
        self.items.append(n)
        log.log(_LEVELS[type], "[%s] %s", type, message)
        for listener in self._listeners:
            listener(n)
        return n

    def success(self, message: str, title: str = "") -> Notification:
        return self.notify("success", message, title)

    def info(self, message: str, title: str = "") -> Notification:
        return self.notify("info", message, title)

    def warning(self, message: str, title: str = "") -> Notification:
        return self.notify("warning", message, title)

    def error(self, message: str, title: str = "") -> Notification:
        return self.notify("error", message, title)

    def unread(self) -> list[Notification]:
        return [n for n in self.items if not n.read]

    def mark_all_read(self) -> None:
        self.items = [n if n.read else n.model_copy(update={"read": True}) for n in self.items]

    def drain(self) -> list[Notification]:
        items, self.items = self.items, []
        return items
