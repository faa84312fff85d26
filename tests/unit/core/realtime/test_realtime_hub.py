"""Tests for the in-process realtime hub."""

from __future__ import annotations

import pytest

from vitaldash.core.realtime.hub import RealtimeError, RealtimeHub, parse_filter


@pytest.fixture
def hub():
    return RealtimeHub()


class TestFilters:
    def test_parse_eq(self):
        assert parse_filter("device_id=eq.abc-123") == ("device_id", "abc-123")

    @pytest.mark.parametrize("expr", ["device_id", "=eq.x", "device_id=gt.5", "device_id=eq"])
    def test_rejects_unsupported(self, expr):
        with pytest.raises(RealtimeError):
            parse_filter(expr)


class TestDelivery:
    def test_filtered_delivery(self, hub):
        got = []
        hub.channel("c").on("INSERT", "telemetry", got.append, filter="device_id=eq.d1").subscribe()

        hub.publish("telemetry", "INSERT", {"device_id": "d1", "hr": 70})
        hub.publish("telemetry", "INSERT", {"device_id": "d2", "hr": 71})
        hub.publish("reports", "INSERT", {"device_id": "d1"})

        assert [e.new["hr"] for e in got] == [70]
        assert got[0].commit_timestamp

    def test_not_delivered_before_subscribe(self, hub):
        got = []
        hub.channel("c").on("INSERT", "telemetry", got.append)
        hub.publish("telemetry", "INSERT", {"device_id": "d1"})
        assert got == []

    def test_only_insert_events_supported(self, hub):
        with pytest.raises(RealtimeError, match="Unsupported event type"):
            hub.channel("c").on("UPDATE", "telemetry", lambda e: None)

    def test_no_delivery_after_remove(self, hub):
        got = []
        channel = hub.channel("c").on("INSERT", "telemetry", got.append).subscribe()
        hub.remove_channel(channel)
        hub.publish("telemetry", "INSERT", {"device_id": "d1"})
        assert got == []
        assert channel.state == "closed"


class TestLifecycle:
    def test_duplicate_open_rejected(self, hub):
        hub.channel("c").subscribe()
        with pytest.raises(RealtimeError, match="already open"):
            hub.channel("c")

    def test_double_remove_rejected(self, hub):
        channel = hub.channel("c").subscribe()
        hub.remove_channel(channel)
        with pytest.raises(RealtimeError, match="not open"):
            hub.remove_channel(channel)

    def test_name_reusable_after_remove(self, hub):
        hub.remove_channel(hub.channel("c").subscribe())
        hub.channel("c").subscribe()
        assert hub.open_channels == ["c"]

    def test_bind_after_subscribe_rejected(self, hub):
        channel = hub.channel("c").subscribe()
        with pytest.raises(RealtimeError, match="Cannot bind"):
            channel.on("INSERT", "telemetry", lambda e: None)


class TestErrors:
    def test_callback_failure_marks_errored_and_reports(self, hub):
        errors = []

        def boom(event):
            raise ValueError("bad row")

        channel = hub.channel("c").on("INSERT", "telemetry", boom).on_error(errors.append).subscribe()
        hub.publish("telemetry", "INSERT", {"device_id": "d1"})

        assert channel.state == "errored"
        assert channel.is_open
        assert isinstance(errors[0], ValueError)

    def test_errored_channel_stops_delivering(self, hub):
        calls = []

        def flaky(event):
            calls.append(event)
            raise RuntimeError("stop")

        hub.channel("c").on("INSERT", "telemetry", flaky).subscribe()
        hub.publish("telemetry", "INSERT", {})
        hub.publish("telemetry", "INSERT", {})
        assert len(calls) == 1

    def test_failure_does_not_affect_other_channels(self, hub):
        got = []
        hub.channel("bad").on("INSERT", "telemetry", lambda e: 1 / 0).subscribe()
        hub.channel("good").on("INSERT", "telemetry", got.append).subscribe()
        hub.publish("telemetry", "INSERT", {})
        assert len(got) == 1
