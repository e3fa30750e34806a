"""User-facing notices (toasts) raised by the scheduling and routing cores"""

import logging
from datetime import datetime
from typing import Callable, Literal, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

NoticeLevel = Literal["success", "error", "conflict", "info"]


class Notice(BaseModel):
    """A single notice for the presentation layer"""

    level: NoticeLevel
    message: str
    created_at: datetime = Field(default_factory=datetime.now)


class Notifier:
    """
    Collects notices and forwards them to an optional listener.

    The presentation layer registers a listener (toast renderer); tests read
    ``notices`` directly.
    """

    def __init__(self, listener: Optional[Callable[[Notice], None]] = None, history: int = 50):
        self.listener = listener
        self.history = history
        self.notices: list[Notice] = []

    def notify(self, level: NoticeLevel, message: str) -> Notice:
        notice = Notice(level=level, message=message)
        self.notices.append(notice)
        if len(self.notices) > self.history:
            del self.notices[: -self.history]

        if self.listener is not None:
            try:
                self.listener(notice)
            except Exception as e:
                # A broken toast renderer must not undo a mutation
                logger.error(f"❌ Notice listener failed: {e}")
        return notice

    def success(self, message: str) -> Notice:
        return self.notify("success", message)

    def error(self, message: str) -> Notice:
        return self.notify("error", message)

    def conflict(self, message: str) -> Notice:
        return self.notify("conflict", message)

    def info(self, message: str) -> Notice:
        return self.notify("info", message)

    @property
    def last(self) -> Optional[Notice]:
        return self.notices[-1] if self.notices else None
