"""In-process realtime change notification.

Mirrors the channel API of a hosted realtime service: a view opens a named
channel, binds callbacks to INSERT events on a table (optionally filtered by
an equality predicate such as ``device_id=eq.<id>``), subscribes, and later
removes the channel. The repository publishes one event per inserted row.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

logger = logging.getLogger(__name__)

ChangeCallback = Callable[["ChangeEvent"], None]
ErrorCallback = Callable[[Exception], None]

SUPPORTED_EVENTS = {"INSERT"}


class RealtimeError(Exception):
    """Raised on misuse of realtime channels."""


@dataclass
class ChangeEvent:
    """A row change delivered to channel subscribers."""

    table: str
    event_type: str
    new: dict[str, Any] = field(default_factory=dict)
    commit_timestamp: str = ""


@dataclass
class _Binding:
    event_type: str
    table: str
    callback: ChangeCallback
    column: str | None = None
    value: str | None = None

    def matches(self, event: ChangeEvent) -> bool:
        if event.event_type != self.event_type or event.table != self.table:
            return False
        if self.column is None:
            return True
        return str(event.new.get(self.column)) == self.value


def parse_filter(expression: str) -> tuple[str, str]:
    """Parse ``column=eq.value`` into ``(column, value)``.

    Only equality predicates are supported.
    """
    column, sep, predicate = expression.partition("=")
    if not sep or not column:
        raise RealtimeError(f"Malformed filter: {expression!r}")
    operator, dot, value = predicate.partition(".")
    if operator != "eq" or not dot:
        raise RealtimeError(f"Unsupported filter operator in {expression!r}; only 'eq' is allowed")
    return column, value


class Channel:
    """A named subscription. States: ``created`` -> ``joined`` -> ``closed`` (or ``errored``)."""

    def __init__(self, hub: RealtimeHub, name: str) -> None:
        self._hub = hub
        self.name = name
        self.state = "created"
        self._bindings: list[_Binding] = []
        self._error_handler: ErrorCallback | None = None

    def on(
        self,
        event_type: str,
        table: str,
        callback: ChangeCallback,
        *,
        filter: str | None = None,
    ) -> Channel:
        """Bind a callback to change events on ``table``."""
        if event_type not in SUPPORTED_EVENTS:
            raise RealtimeError(f"Unsupported event type: {event_type!r}")
        if self.state != "created":
            raise RealtimeError(f"Cannot bind on channel {self.name!r} in state {self.state}")
        column, value = parse_filter(filter) if filter else (None, None)
        self._bindings.append(_Binding(event_type, table, callback, column, value))
        return self

    def on_error(self, handler: ErrorCallback) -> Channel:
        self._error_handler = handler
        return self

    def subscribe(self) -> Channel:
        self._hub._join(self)
        self.state = "joined"
        logger.debug("Channel %s joined (%d bindings)", self.name, len(self._bindings))
        return self

    @property
    def is_open(self) -> bool:
        return self.state in ("joined", "errored")

    def _deliver(self, event: ChangeEvent) -> None:
        if self.state != "joined":
            return
        for binding in self._bindings:
            if not binding.matches(event):
                continue
            try:
                binding.callback(event)
            except Exception as exc:
                self.state = "errored"
                logger.exception("Realtime callback failed on channel %s", self.name)
                if self._error_handler is not None:
                    self._error_handler(exc)
                return


class RealtimeHub:
    """Registry of open channels; fans published events out to them."""

    def __init__(self) -> None:
        self._channels: dict[str, Channel] = {}

    def channel(self, name: str) -> Channel:
        """Create a channel. Opening a name that is already open is an error."""
        if name in self._channels:
            raise RealtimeError(f"Channel {name!r} is already open; remove it first")
        return Channel(self, name)

    def _join(self, channel: Channel) -> None:
        if channel.name in self._channels:
            raise RealtimeError(f"Channel {channel.name!r} is already open; remove it first")
        self._channels[channel.name] = channel

    def remove_channel(self, channel: Channel) -> None:
        """Close a channel. Closing a channel that is not open is an error."""
        if self._channels.get(channel.name) is not channel:
            raise RealtimeError(f"Channel {channel.name!r} is not open")
        del self._channels[channel.name]
        channel.state = "closed"
        logger.debug("Channel %s closed", channel.name)

    @property
    def open_channels(self) -> list[str]:
        return sorted(self._channels)

    def publish(self, table: str, event_type: str, new: dict[str, Any]) -> ChangeEvent:
        """Deliver a change event to every open channel with a matching binding."""
        event = ChangeEvent(
            table=table,
            event_type=event_type,
            new=dict(new),
            commit_timestamp=datetime.now(timezone.utc).isoformat(),
        )
        # Callbacks may close channels (e.g. a view tearing down), so iterate over a copy.
        for channel in list(self._channels.values()):
            channel._deliver(event)
        return event
