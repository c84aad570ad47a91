"""
Notification sink: transient, stacked toast messages for the board UI.

Toasts expire after a fixed duration: inside an event loop each one schedules
its own removal, and every read also drops toasts past their age. The
container exists only while at least one toast is visible.
"""

import asyncio
import itertools
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from clinic_crm.config import config

logger = logging.getLogger("kanban.notifications")


class Severity(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    WARNING = "warning"


@dataclass
class Toast:
    id: int
    message: str
    severity: Severity
    created_at: float


class NotificationSink:
    """Collects toasts in creation order and expires them by age."""

    def __init__(self, duration: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self.duration = config.TOAST_DURATION_SECONDS if duration is None else duration
        self.clock = clock
        self._toasts: List[Toast] = []
        self._ids = itertools.count(1)

    def notify(self, message: str, severity: Severity = Severity.INFO) -> Toast:
        self.expire()
        toast = Toast(
            id=next(self._ids),
            message=message,
            severity=Severity(severity),
            created_at=self.clock(),
        )
        self._toasts.append(toast)
        log = logger.warning if toast.severity == Severity.ERROR else logger.info
        log(f"[{toast.severity.value}] {message}")

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        if loop is not None:
            loop.call_later(self.duration, self.dismiss, toast.id)
        return toast

    def success(self, message: str) -> Toast:
        return self.notify(message, Severity.SUCCESS)

    def error(self, message: str) -> Toast:
        return self.notify(message, Severity.ERROR)

    def info(self, message: str) -> Toast:
        return self.notify(message, Severity.INFO)

    def warning(self, message: str) -> Toast:
        return self.notify(message, Severity.WARNING)

    def dismiss(self, toast_id: int) -> bool:
        """Remove one toast early. Returns False if it was already gone."""
        for index, toast in enumerate(self._toasts):
            if toast.id == toast_id:
                del self._toasts[index]
                return True
        return False

    def expire(self, now: Optional[float] = None) -> List[Toast]:
        """Drop toasts whose age reached the duration and return them."""
        now = self.clock() if now is None else now
        expired = [t for t in self._toasts if now - t.created_at >= self.duration]
        if expired:
            self._toasts = [t for t in self._toasts if now - t.created_at < self.duration]
        return expired

    @property
    def visible(self) -> List[Toast]:
        self.expire()
        return list(self._toasts)

    @property
    def has_container(self) -> bool:
        self.expire()
        return bool(self._toasts)

    def messages(self, severity: Optional[Severity] = None) -> List[str]:
        self.expire()
        return [t.message for t in self._toasts if severity is None or t.severity == severity]
