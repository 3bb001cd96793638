from __future__ import annotations

import logging
from collections import deque
from datetime import datetime
from typing import Deque, List, Literal

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

Variant = Literal["default", "destructive"]


class Notification(BaseModel):
    """A transient, user-facing message (a toast in the browser client)."""

    title: str
    description: str = ""
    variant: Variant = "default"
    created_at: str = Field(default_factory=lambda: datetime.now().isoformat())


class NotificationCenter:
    """Keeps the most recent notifications for the client to poll."""

    def __init__(self, maxlen: int = 50):
        self._items: Deque[Notification] = deque(maxlen=maxlen)

    def notify(self, title: str, description: str = "", variant: Variant = "default") -> Notification:
        note = Notification(title=title, description=description, variant=variant)
        self._items.appendleft(note)
        if variant == "destructive":
            logger.warning(f"{title}: {description}")
        else:
            logger.info(f"{title}: {description}")
        return note

    def error(self, title: str, description: str = "") -> Notification:
        return self.notify(title, description, variant="destructive")

    def recent(self, limit: int = 20) -> List[Notification]:
        return list(self._items)[:limit]

    def clear(self) -> None:
        self._items.clear()
