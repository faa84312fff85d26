"""Unread health alerts: the dashboard banner and badge."""

from __future__ import annotations

import logging
from typing import Callable

from vitaldash.core.backend.client import BACKEND_ERRORS, BackendClient
from vitaldash.core.storage.models import Alert, User
from vitaldash.domains.health.domain_logic.notifications import Notifier

logger = logging.getLogger(__name__)

BANNER_LIMIT = 5


class AlertCenter:
    def __init__(
        self,
        backend: BackendClient,
        notifier: Notifier,
        current_user: Callable[[], User],
        *,
        limit: int = BANNER_LIMIT,
    ) -> None:
        self._backend = backend
        self._notifier = notifier
        self._current_user = current_user
        self.limit = limit
        self.alerts: list[Alert] = []

    def unread(self) -> list[Alert]:
        """Newest unread alerts, at most ``limit``."""
        user = self._current_user()
        try:
            self.alerts = self._backend.repository.list_unread_alerts(user.id, limit=self.limit)
        except BACKEND_ERRORS:
            logger.exception("Alert fetch failed")
            self._notifier.error("Failed to load alerts")
        return list(self.alerts)

    def unread_count(self) -> int:
        user = self._current_user()
        try:
            return self._backend.repository.count_unread_alerts(user.id)
        except BACKEND_ERRORS:
            logger.exception("Alert count failed")
            return len(self.alerts)

    def dismiss(self, alert_id: str) -> bool:
        user = self._current_user()
        try:
            found = self._backend.repository.mark_alert_read(user.id, alert_id)
        except BACKEND_ERRORS:
            logger.exception("Alert dismiss failed for %s", alert_id)
            self._notifier.error("Failed to dismiss alert")
            return False
        if not found:
            self._notifier.error("Alert not found")
            return False
        self.alerts = [a for a in self.alerts if a.id != alert_id]
        return True
