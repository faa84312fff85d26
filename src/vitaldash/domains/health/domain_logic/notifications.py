"""Transient user notifications (the dashboard's toasts)."""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)

MAX_PENDING = 50


@dataclass
class Notification:
    title: str
    description: str
    variant: str = "default"  # "default" | "destructive"
    created_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class Notifier:
    """Collects notifications until a client drains them.

    Only the newest ``MAX_PENDING`` are kept.
    """

    def __init__(self) -> None:
        self._pending: deque[Notification] = deque(maxlen=MAX_PENDING)
        self._lock = threading.Lock()

    def notify(self, title: str, description: str, variant: str = "default") -> Notification:
        note = Notification(
            title=title,
            description=description,
            variant=variant,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        with self._lock:
            self._pending.append(note)
        if variant == "destructive":
            logger.warning("Notification: %s: %s", title, description)
        else:
            logger.info("Notification: %s: %s", title, description)
        return note

    def error(self, description: str, title: str = "Error") -> Notification:
        return self.notify(title, description, "destructive")

    def success(self, description: str, title: str = "Success") -> Notification:
        return self.notify(title, description)

    def peek(self) -> list[Notification]:
        with self._lock:
            return list(self._pending)

    def drain(self) -> list[Notification]:
        """Return and clear pending notifications, oldest first."""
        with self._lock:
            notes = list(self._pending)
            self._pending.clear()
        return notes
