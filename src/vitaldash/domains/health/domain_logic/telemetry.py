"""Realtime telemetry for the selected device: latest reading plus a chart window.

On device selection the monitor seeds its state with two queries (the most
recent sample, and the last ``window_size`` samples in ascending order), then
opens one realtime channel filtered to that device. Each INSERT event replaces
"latest" and enters the window, which evicts its oldest entry once it grows
past ``window_size``.
"""

from __future__ import annotations

import bisect
import logging
import threading
import uuid
from dataclasses import fields
from typing import Any, Callable

from vitaldash.core.backend.client import BACKEND_ERRORS, BackendClient
from vitaldash.core.realtime.hub import Channel, ChangeEvent, RealtimeError
from vitaldash.core.storage.models import TelemetrySample
from vitaldash.domains.health.domain_logic.notifications import Notifier

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SIZE = 50

UpdateCallback = Callable[[TelemetrySample], None]

_SAMPLE_FIELDS = tuple(f.name for f in fields(TelemetrySample))


def sample_from_row(row: dict[str, Any]) -> TelemetrySample:
    return TelemetrySample(**{name: row.get(name) for name in _SAMPLE_FIELDS})


class TelemetryMonitor:
    """Live vitals view for one device at a time."""

    def __init__(
        self,
        backend: BackendClient,
        notifier: Notifier,
        *,
        window_size: int = DEFAULT_WINDOW_SIZE,
        on_update: UpdateCallback | None = None,
    ) -> None:
        if window_size < 1:
            raise ValueError("window_size must be at least 1")
        self._backend = backend
        self._notifier = notifier
        self.window_size = window_size
        self.on_update = on_update
        self._channel_prefix = f"telemetry-{uuid.uuid4().hex[:8]}"
        self._lock = threading.Lock()
        self._channel: Channel | None = None
        self.device_id: str | None = None
        self._latest: TelemetrySample | None = None
        self._window: list[TelemetrySample] = []
        self.stalled = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def latest(self) -> TelemetrySample | None:
        with self._lock:
            return self._latest

    @property
    def window(self) -> list[TelemetrySample]:
        """Chart window, ascending by timestamp."""
        with self._lock:
            return list(self._window)

    @property
    def is_empty(self) -> bool:
        with self._lock:
            return self._latest is None and not self._window

    @property
    def is_live(self) -> bool:
        return self._channel is not None and self._channel.state == "joined"

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            latest = self._latest
            window = list(self._window)
        return {
            "device_id": self.device_id,
            "latest": latest.to_dict() if latest else None,
            "window": [s.to_dict() for s in window],
            "window_size": self.window_size,
            "empty": latest is None and not window,
            "live": self.is_live,
            "stalled": self.stalled,
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def select_device(self, device_id: str) -> None:
        """Switch to ``device_id``: close the old channel, seed, then subscribe."""
        if device_id == self.device_id and self.is_live:
            return
        self._close_channel()
        with self._lock:
            self.device_id = device_id
            self._latest = None
            self._window = []
        self.stalled = False
        self.refresh()
        self._open_channel(device_id)

    def refresh(self) -> bool:
        """Re-seed latest and window from the backend.

        A failed fetch leaves the prior state untouched.
        """
        device_id = self.device_id
        if device_id is None:
            return False
        repository = self._backend.repository
        try:
            latest = repository.latest_telemetry(device_id)
            recent = repository.recent_telemetry(device_id, limit=self.window_size)
        except BACKEND_ERRORS:
            logger.exception("Telemetry fetch failed for device %s", device_id)
            self._notifier.error("Failed to load telemetry")
            return False
        with self._lock:
            if self.device_id != device_id:
                return False
            self._latest = latest
            self._window = recent[-self.window_size:]
        return True

    def close(self) -> None:
        """Tear down the view; safe to call when nothing is open."""
        self._close_channel()
        with self._lock:
            self.device_id = None

    def _open_channel(self, device_id: str) -> None:
        channel = (
            self._backend.realtime.channel(f"{self._channel_prefix}:{device_id}")
            .on("INSERT", "telemetry", self._handle_insert, filter=f"device_id=eq.{device_id}")
            .on_error(self._handle_error)
        )
        self._channel = channel.subscribe()

    def _close_channel(self) -> None:
        channel, self._channel = self._channel, None
        if channel is None:
            return
        try:
            self._backend.realtime.remove_channel(channel)
        except RealtimeError:
            logger.warning("Channel %s was already closed", channel.name)

    # ------------------------------------------------------------------
    # Realtime events
    # ------------------------------------------------------------------

    def _handle_insert(self, event: ChangeEvent) -> None:
        sample = sample_from_row(event.new)
        with self._lock:
            if sample.device_id != self.device_id:
                return
            self._latest = sample
            bisect.insort_right(self._window, sample, key=lambda s: s.ts)
            while len(self._window) > self.window_size:
                self._window.pop(0)
        if self.on_update is not None:
            self.on_update(sample)

    def _handle_error(self, exc: Exception) -> None:
        self.stalled = True
        self._notifier.error(f"Live updates stopped: {exc}", title="Live updates stopped")
