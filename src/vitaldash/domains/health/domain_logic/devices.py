"""Device registry for the signed-in user."""

from __future__ import annotations

import logging
from typing import Callable

from vitaldash.core.backend.client import BACKEND_ERRORS, BackendClient
from vitaldash.core.storage.models import Device, User
from vitaldash.domains.health.domain_logic.notifications import Notifier
from vitaldash.domains.health.domain_logic.telemetry import TelemetryMonitor

logger = logging.getLogger(__name__)


class DeviceRegistry:
    """Lists, adds and selects devices; the selection drives the telemetry monitor."""

    def __init__(
        self,
        backend: BackendClient,
        notifier: Notifier,
        current_user: Callable[[], User],
        monitor: TelemetryMonitor,
    ) -> None:
        self._backend = backend
        self._notifier = notifier
        self._current_user = current_user
        self.monitor = monitor
        self.devices: list[Device] = []
        self.selected_id: str | None = None

    @property
    def selected(self) -> Device | None:
        return next((d for d in self.devices if d.id == self.selected_id), None)

    def list_devices(self) -> list[Device]:
        """Fetch the user's devices, newest first, auto-selecting the first one."""
        user = self._current_user()
        try:
            devices = self._backend.repository.list_devices(user.id)
        except BACKEND_ERRORS:
            logger.exception("Device fetch failed")
            self._notifier.error("Failed to load devices")
            return list(self.devices)

        self.devices = devices
        if self.selected_id is None and devices:
            self._select(devices[0])
        return list(devices)

    def add_device(self, name: str) -> Device | None:
        name = name.strip()
        if not name:
            self._notifier.error("Device name is required")
            return None

        user = self._current_user()
        try:
            device = self._backend.repository.create_device(user.id, name)
        except BACKEND_ERRORS:
            logger.exception("Device insert failed")
            self._notifier.error("Failed to add device")
            return None

        self._notifier.success("Device added successfully")
        self.list_devices()
        return device

    def select_device(self, device_id: str) -> Device | None:
        user = self._current_user()
        try:
            device = self._backend.repository.get_device(user.id, device_id)
        except BACKEND_ERRORS:
            logger.exception("Device lookup failed")
            self._notifier.error("Failed to load devices")
            return None
        if device is None:
            self._notifier.error("Device not found")
            return None
        if all(d.id != device.id for d in self.devices):
            self.devices.insert(0, device)
        self._select(device)
        return device

    def _select(self, device: Device) -> None:
        self.selected_id = device.id
        self.monitor.select_device(device.id)
        logger.info("Selected device %s", device.id)

    def clear(self) -> None:
        self.monitor.close()
        self.devices = []
        self.selected_id = None
