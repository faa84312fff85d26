"""Dashboard session: the signed-in user's view over devices, vitals, reports and alerts."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from vitaldash.core.backend.client import BackendClient
from vitaldash.core.functions.client import FunctionsClient
from vitaldash.core.storage.models import Session, User
from vitaldash.domains.health.domain_logic.alerts import AlertCenter
from vitaldash.domains.health.domain_logic.assistant import HealthAssistant
from vitaldash.domains.health.domain_logic.devices import DeviceRegistry
from vitaldash.domains.health.domain_logic.notifications import Notifier
from vitaldash.domains.health.domain_logic.reports import MAX_UPLOAD_BYTES, ReportLibrary
from vitaldash.domains.health.domain_logic.telemetry import DEFAULT_WINDOW_SIZE, TelemetryMonitor
from vitaldash.domains.health.prompts.templates import PromptTemplates

logger = logging.getLogger(__name__)


class NotSignedInError(Exception):
    """A dashboard action needs a signed-in user."""


class DashboardSession:
    """One user's dashboard.

    Holds the auth session and the components that act on the user's behalf.
    AI features reach the serverless functions through ``functions_url`` with
    the session's bearer token.
    """

    def __init__(
        self,
        backend: BackendClient,
        templates: PromptTemplates,
        *,
        functions_url: str,
        functions_transport: httpx.AsyncBaseTransport | None = None,
        window_size: int = DEFAULT_WINDOW_SIZE,
        max_upload_bytes: int = MAX_UPLOAD_BYTES,
        max_report_chars: int = 50_000,
    ) -> None:
        self.backend = backend
        self.notifier = Notifier()
        self._session: Session | None = None

        self.functions = FunctionsClient(
            functions_url,
            token_provider=lambda: self.access_token,
            transport=functions_transport,
        )
        self.monitor = TelemetryMonitor(backend, self.notifier, window_size=window_size)
        self.devices = DeviceRegistry(backend, self.notifier, self.require_user, self.monitor)
        self.reports = ReportLibrary(
            backend,
            self.notifier,
            self.require_user,
            self.functions,
            max_upload_bytes=max_upload_bytes,
            max_report_chars=max_report_chars,
        )
        self.alerts = AlertCenter(backend, self.notifier, self.require_user)
        self.assistant = HealthAssistant(self.functions, templates, self.notifier)

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    @property
    def user(self) -> User | None:
        if self._session is None:
            return None
        # Expired tokens sign the dashboard out.
        if self.backend.auth.get_user(self._session.access_token) is None:
            logger.info("Session for %s expired", self._session.user.email)
            self._reset()
            return None
        return self._session.user

    @property
    def access_token(self) -> str | None:
        return self._session.access_token if self._session else None

    def require_user(self) -> User:
        user = self.user
        if user is None:
            raise NotSignedInError("Sign in to use the dashboard")
        return user

    def sign_up(self, email: str, password: str) -> User:
        """Register and sign in. Raises ``AuthError`` on rejection."""
        self.backend.auth.sign_up(email, password)
        return self.sign_in(email, password).user

    def sign_in(self, email: str, password: str) -> Session:
        session = self.backend.auth.sign_in(email, password)
        if self._session is not None:
            self.sign_out()
        self._session = session
        logger.info("Dashboard signed in as %s", session.user.email)
        return session

    def sign_out(self) -> bool:
        if self._session is None:
            return False
        if not self.backend.auth.sign_out(self._session.access_token):
            logger.warning("Session was already gone at sign-out")
        self._reset()
        return True

    def _reset(self) -> None:
        self._session = None
        self.devices.clear()
        self.reports.reports = []
        self.alerts.alerts = []
        self.assistant.reset_chat()

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        """Dashboard page state: devices, selected device vitals, alert banner and badge."""
        user = self.require_user()
        devices = self.devices.list_devices()
        return {
            "user": {"id": user.id, "email": user.email},
            "devices": [d.to_dict() for d in devices],
            "selected_device_id": self.devices.selected_id,
            "telemetry": self.monitor.snapshot(),
            "alerts": [a.to_dict() for a in self.alerts.unread()],
            "unread_alert_count": self.alerts.unread_count(),
            "notifications": [n.to_dict() for n in self.notifier.drain()],
        }

    def close(self) -> None:
        self.monitor.close()
