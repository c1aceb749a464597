#!/usr/bin/env python3
"""
test_reporter.py - R4 Unit Tests for Reporter and report sinks

Tests both report shapes, trigger configuration, output formatting and the
sink failure policy.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent.parent.parent
sys.path.insert(0, str(project_root))

from dtnreport.config.settings import ReportInstanceConfig
from dtnreport.core.entities import Host, Message, SimClock
from dtnreport.report.reporter import Reporter, format_value
from dtnreport.report.sink import (
    FileReportSink,
    MemoryReportSink,
    ReportOutputError,
    ReportSink,
)


class BrokenSink(ReportSink):
    """Sink whose every write fails."""

    def __init__(self):
        super().__init__("broken")
        self.attempts = 0

    def _write(self, text):
        self.attempts += 1
        raise OSError("disk full")

    def _close(self):
        pass


def make_reporter(shape, interval, triggers=None, sink=None):
    clock = SimClock()
    config = ReportInstanceConfig(name=f"test_{shape}", shape=shape,
                                  occupancy_interval=interval, triggers=triggers)
    return clock, Reporter(config, clock, sink or MemoryReportSink())


def test_format_value():
    assert format_value(3) == "3"
    assert format_value(2.5) == "2.5000"
    assert format_value(2.5, precision=1) == "2.5"
    assert format_value(float('nan')) == "NaN"


def test_per_host_rows_one_write_per_trigger():
    """Test per-host output: one block per trigger, current data only."""
    clock, report = make_reporter("per_host", 10)
    hosts = [Host(2, buffer_occupancy=20.0), Host(1, buffer_occupancy=10.0)]

    clock.set_time(10.0)
    report.updated(hosts)

    hosts[0].buffer_occupancy = 40.0
    clock.set_time(20.0)
    report.updated(hosts)

    assert report.sink.writes == [
        "n1\t10.0000\nn2\t20.0000\n",
        "n1\t10.0000\nn2\t40.0000\n",
    ]


def test_per_host_respects_interval():
    clock, report = make_reporter("per_host", 10)
    hosts = [Host(1, buffer_occupancy=5.0)]

    for t in [0.0, 5.0, 9.0, 10.0, 15.0, 19.9, 20.0]:
        clock.set_time(t)
        report.updated(hosts)

    assert len(report.sink.writes) == 2
    assert report.scheduler.last_record == 20.0


def test_per_host_default_interval_and_subscriptions():
    clock, report = make_reporter("per_host", None)

    assert report.config.occupancy_interval == 3600
    assert report.subscribes_to_updates()
    assert not report.subscribes_to_messages()


def test_aggregate_line_fields():
    """Test the aggregate line: time delivered mean variance latency hops rtt."""
    clock, report = make_reporter("aggregate", 0, triggers=["world_tick"])
    a = Host(1, buffer_occupancy=0.0)
    b = Host(2, buffer_occupancy=100.0)

    msg = Message("M1", hops=[a])
    report.new_message(msg)

    clock.set_time(4.0)
    msg.hops.append(b)
    report.message_transferred(msg, a, b, True)

    report.updated([a, b])

    assert report.sink.lines() == ["4.0000 1 50.0000 25.0000 4.0000 1.0000 NaN"]


def test_aggregate_default_triggers_on_message_transfer():
    """Test interval 10 scenario: tick at t=5 is ignored, delivery at t=12 emits."""
    clock, report = make_reporter("aggregate", 10)
    a, b = Host(1, buffer_occupancy=30.0), Host(2, buffer_occupancy=30.0)

    assert report.config.triggers == ["message_transfer"]
    assert report.subscribes_to_messages()

    msg = Message("msg1", hops=[a])
    report.new_message(msg)

    clock.set_time(5.0)
    report.updated([a, b])
    assert report.sink.writes == []

    clock.set_time(12.0)
    msg.hops.append(b)
    report.message_transferred(msg, a, b, True)

    assert report.stats.delivered == 1
    assert report.scheduler.last_record == 12.0
    assert report.sink.lines() == ["12.0000 1 30.0000 0.0000 12.0000 1.0000 NaN"]


def test_both_triggers_share_one_gate():
    clock, report = make_reporter("aggregate", 10,
                                  triggers=["world_tick", "message_transfer"])
    a, b = Host(1), Host(2)
    msg = Message("M1", hops=[a, b])
    report.new_message(msg)

    clock.set_time(10.0)
    report.updated([a, b])
    report.message_transferred(msg, a, b, True)

    assert len(report.sink.writes) == 1
    assert report.stats.delivered == 1


def test_message_trigger_before_first_tick_has_nan_occupancy():
    clock, report = make_reporter("aggregate", 0)
    a, b = Host(1), Host(2)
    msg = Message("M1", hops=[a, b])
    report.new_message(msg)
    report.message_transferred(msg, a, b, True)

    assert report.sink.lines() == ["0.0000 1 NaN NaN 0.0000 1.0000 NaN"]


def test_per_host_with_no_hosts_writes_nothing():
    clock, report = make_reporter("per_host", 0)
    report.updated([])

    assert report.sink.writes == []
    assert report.emissions == 1


def test_done_writes_summary_and_closes():
    clock, report = make_reporter("aggregate", 5)
    report.new_message(Message("M1"))

    clock.set_time(100.0)
    report.done()

    text = report.sink.getvalue()
    assert text.startswith("Message stats for report test_aggregate\nsim_time: 100.0000\n")
    assert "created: 1\n" in text
    assert "delivery_prob: 0.0000\n" in text
    assert "latency_avg: NaN\n" in text
    assert report.sink.closed

    # Closed sink drops further writes
    report.emit()
    assert len(report.sink.writes) == 1


def test_per_host_done_writes_no_summary():
    clock, report = make_reporter("per_host", 5)
    report.done()

    assert report.sink.writes == []
    assert report.sink.closed


def test_broken_sink_reported_once():
    """Test a failing write raises once, then further writes are dropped."""
    sink = BrokenSink()
    clock, report = make_reporter("aggregate", 0, triggers=["world_tick"], sink=sink)

    with pytest.raises(ReportOutputError, match="disk full"):
        report.updated([Host(1)])

    assert sink.failed
    report.updated([Host(1)])
    report.updated([Host(1)])
    assert sink.attempts == 1


def test_file_sink_writes_and_closes(tmp_path):
    path = tmp_path / "out" / "occupancy.txt"
    with FileReportSink(str(path)) as sink:
        sink.write("n1\t10.0000")
        sink.write("n1\t20.0000")

    assert sink.closed
    assert path.read_text() == "n1\t10.0000\nn1\t20.0000\n"


def test_reporter_context_manager_closes_on_error():
    clock, report = make_reporter("per_host", 0)

    with pytest.raises(RuntimeError):
        with report:
            raise RuntimeError("unrelated component failed")

    assert report.sink.closed
