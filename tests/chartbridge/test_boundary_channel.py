"""Tests for the boundary channel against the fake surface."""

from __future__ import annotations

import math
import threading

import pytest

from chartbridge.core.channel import BoundaryChannel, RecordingTransport, SurfaceTransport
from chartbridge.core.dispatch import QueueDispatcher
from chartbridge.core.errors import ChartDataError, ProtocolError
from chartbridge.core.spec import ChartSpec


class Listener:
    def __init__(self):
        self.ready = 0
        self.errors: list[str] = []

    def on_surface_ready(self):
        self.ready += 1

    def on_surface_error(self, message):
        self.errors.append(message)


def ready_channel(surface, **kwargs):
    channel = BoundaryChannel(surface, **kwargs)
    channel.inbound.surface_ready("echarts_factory")
    return channel


def test_transports_satisfy_protocol(surface):
    assert isinstance(RecordingTransport(), SurfaceTransport)
    assert isinstance(surface, SurfaceTransport)


def test_commands_before_ready_are_dropped(surface, revenue_spec):
    channel = BoundaryChannel(surface)
    assert channel.render_one(revenue_spec) is None
    report = channel.render_batch([revenue_spec])
    assert report.sent == 0
    assert channel.remove("revenue_chart") is False
    assert channel.clear_all() is False
    assert surface.scripts == []


def test_batch_renders_in_order(surface, revenue_spec, stacked_spec, share_spec):
    channel = ready_channel(surface)
    report = channel.render_batch([share_spec, revenue_spec, stacked_spec])
    assert report.added == ["share_chart", "revenue_chart", "channel_chart"]
    assert report.ok
    assert surface.chart_ids == ["share_chart", "revenue_chart", "channel_chart"]
    assert channel.chart_ids == {"share_chart", "revenue_chart", "channel_chart"}


def test_rerender_updates_same_instance(surface, revenue_spec):
    channel = ready_channel(surface)
    channel.render_one(revenue_spec)
    updated = revenue_spec.evolve(title="Revenue (updated)")
    report = channel.render_batch([updated])
    assert report.updated == ["revenue_chart"]
    assert report.added == []
    assert surface.created == {"revenue_chart": 1}
    assert surface.charts["revenue_chart"].config["title"] == "Revenue (updated)"


def test_remove_unknown_id_sends_nothing(surface, revenue_spec):
    channel = ready_channel(surface)
    channel.render_one(revenue_spec)
    sent = len(surface.scripts)
    assert channel.remove("never_rendered") is False
    assert len(surface.scripts) == sent


def test_remove_and_clear(surface, revenue_spec, share_spec):
    channel = ready_channel(surface)
    channel.render_batch([revenue_spec, share_spec])
    assert channel.remove("revenue_chart") is True
    assert surface.chart_ids == ["share_chart"]
    assert channel.remove("revenue_chart") is False
    assert channel.clear_all() is True
    assert surface.chart_ids == []
    assert channel.chart_ids == frozenset()


def test_bad_chart_does_not_stop_batch(surface, revenue_spec, share_spec):
    broken = ChartSpec.create("broken", [{"date": "Jan", "revenue": math.nan}], encode={"x": "date"})
    channel = ready_channel(surface)
    report = channel.render_batch([revenue_spec, broken, share_spec])
    assert report.added == ["revenue_chart", "share_chart"]
    assert [f.chart_id for f in report.failures] == ["broken"]
    assert "[200]" in report.failures[0].message
    assert not report.ok
    assert surface.chart_ids == ["revenue_chart", "share_chart"]
    assert "broken" not in channel.chart_ids


def test_skipped_rows_are_reported(surface):
    spec = ChartSpec.create(
        "g",
        [{"date": "Jan", "channel": "Online", "revenue": 1}, {"date": "Feb", "revenue": 2}],
        encode={"x": "date", "y": "revenue"},
        group_field="channel",
    )
    channel = ready_channel(surface)
    report = channel.render_batch([spec])
    assert report.skipped_rows == {"g": 1}
    assert report.warnings() == ["Chart 'g': 1 row(s) skipped for missing fields"]


def test_ready_signal_is_idempotent():
    listener = Listener()
    channel = BoundaryChannel(RecordingTransport(), listener=listener)
    channel.inbound.surface_ready("echarts_factory")
    channel.inbound.surface_ready("echarts_factory")
    channel.mark_ready()
    assert channel.is_surface_ready
    assert listener.ready == 1


def test_surface_error_reaches_listener():
    listener = Listener()
    channel = BoundaryChannel(RecordingTransport(), listener=listener)
    channel.inbound.surface_error("ReferenceError: echarts is not defined")
    assert listener.errors == ["ReferenceError: echarts is not defined"]
    assert not channel.is_surface_ready


def test_inbound_from_worker_thread_is_marshaled(surface, revenue_spec):
    dispatcher = QueueDispatcher()
    listener = Listener()
    channel = BoundaryChannel(surface, dispatcher=dispatcher, listener=listener)

    t = threading.Thread(
        target=channel.inbound.surface_ready, args=("echarts_factory",), name="webview"
    )
    t.start()
    t.join()

    # nothing changes until the control context drains the queue
    assert not channel.is_surface_ready
    assert listener.ready == 0
    assert dispatcher.pending() == 1

    assert dispatcher.run_pending() == 1
    assert channel.is_surface_ready
    assert listener.ready == 1
    channel.render_one(revenue_spec)
    assert surface.chart_ids == ["revenue_chart"]


def test_mark_ready_off_control_context_is_rejected():
    channel = BoundaryChannel(RecordingTransport(), dispatcher=QueueDispatcher())
    errors = []

    def worker():
        try:
            channel.mark_ready()
        except ProtocolError as e:
            errors.append(e)

    t = threading.Thread(target=worker)
    t.start()
    t.join()
    assert errors and "[410]" in str(errors[0])
    assert not channel.is_surface_ready


def test_render_one_returns_command(revenue_spec):
    transport = RecordingTransport()
    channel = ready_channel(transport)
    command = channel.render_one(revenue_spec)
    assert command is not None
    assert transport.scripts == [command.script]


def test_render_one_raises_data_errors(surface):
    channel = ready_channel(surface)
    spec = ChartSpec.create("g", [], encode={"x": "date"}, group_field="channel")
    with pytest.raises(ChartDataError, match=r"\[110\]"):
        channel.render_one(spec)
    assert surface.scripts == []
