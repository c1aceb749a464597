#!/usr/bin/env python3
"""
test_message_tracker.py - R3 Unit Tests for MessageLifecycleTracker

Tests message lifecycle accounting: counters, latency, hop count, RTT,
warm-up exclusion and partial histories.
"""

import logging
import math
import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent.parent.parent
sys.path.insert(0, str(project_root))

from dtnreport.core.entities import Host, Message, SimClock
from dtnreport.metrics.stats import MessageStats, average, median
from dtnreport.metrics.tracker import MessageLifecycleTracker
from dtnreport.metrics.warmup import WarmupFilter

A = Host(1)
B = Host(2)
C = Host(3)


@pytest.fixture
def clock():
    return SimClock()


@pytest.fixture
def tracker(clock):
    return MessageLifecycleTracker(clock)


def test_created_counts(clock, tracker):
    """Test creation counters and response reservations."""
    tracker.on_created(Message("M1"))
    tracker.on_created(Message("M2", response_size=100))

    assert tracker.stats.created == 2
    assert tracker.stats.response_created == 1
    assert tracker.creation_times == {"M1": 0.0, "M2": 0.0}


def test_delivery_latency_and_hops(clock, tracker):
    """Test latency = delivery - creation and hop count = path length - 1."""
    clock.set_time(10.0)
    msg = Message("M1", creation_time=10.0, hops=[A])
    tracker.on_created(msg)

    clock.set_time(15.0)
    msg.hops.append(B)
    tracker.on_transferred(msg, A, B, final_target=False)

    clock.set_time(25.0)
    msg.hops.append(C)
    tracker.on_transferred(msg, B, C, final_target=True)

    stats = tracker.stats
    assert stats.relayed == 2
    assert stats.delivered == 1
    assert stats.latencies == [15.0]
    assert stats.hop_counts == [2]


def test_response_rtt(clock, tracker):
    """Test RTT = response delivery time - request creation time."""
    request = Message("REQ", creation_time=0.0, hops=[A], response_size=50)
    tracker.on_created(request)

    clock.set_time(20.0)
    request.hops.append(B)
    tracker.on_transferred(request, A, B, final_target=True)

    response = Message("RESP", creation_time=20.0, hops=[B], request=request)
    tracker.on_created(response)

    clock.set_time(32.0)
    response.hops.append(A)
    tracker.on_transferred(response, B, A, final_target=True)

    stats = tracker.stats
    assert stats.response_created == 1
    assert stats.response_delivered == 1
    assert stats.rtts == [32.0]
    assert stats.latencies == [20.0, 12.0]


def test_started_aborted_deleted(clock, tracker):
    """Test every lifecycle callback updates its counter."""
    msg = Message("M1", hops=[A])
    tracker.on_created(msg)

    tracker.on_transfer_started(msg, A, B)
    tracker.on_transfer_aborted(msg, A, B)
    tracker.on_deleted(msg, A, dropped=False)
    tracker.on_deleted(msg, B, dropped=True)

    stats = tracker.stats
    assert stats.started == 1
    assert stats.aborted == 1
    assert stats.removed == 2
    assert stats.dropped == 1


def test_buffer_time_recorded_on_delete(clock, tracker):
    msg = Message("M1", receive_time=4.0)
    tracker.on_created(msg)

    clock.set_time(10.0)
    tracker.on_deleted(msg, A, dropped=True)

    assert tracker.stats.buffer_times == [6.0]


def test_warmup_messages_never_counted(clock):
    """Test a warm-up message is excluded even after warm-up ends."""
    tracker = MessageLifecycleTracker(clock, WarmupFilter(warmup_time=5))

    clock.set_time(2.0)
    msg = Message("M2", creation_time=2.0, hops=[A], response_size=10)
    tracker.on_created(msg)

    clock.set_time(8.0)
    msg.hops.append(B)
    tracker.on_transfer_started(msg, A, B)
    tracker.on_transferred(msg, A, B, final_target=True)
    tracker.on_transfer_aborted(msg, A, B)
    tracker.on_deleted(msg, B, dropped=True)

    assert tracker.stats == MessageStats()
    assert "M2" not in tracker.creation_times


def test_unknown_message_delivery_is_zero_latency(clock, tracker, caplog):
    """Test a delivery without a prior create logs a warning, never raises."""
    clock.set_time(30.0)
    msg = Message("GHOST", hops=[A, B])

    with caplog.at_level(logging.WARNING, logger='dtnreport.tracker'):
        tracker.on_transferred(msg, A, B, final_target=True)

    assert tracker.stats.delivered == 1
    assert tracker.stats.latencies == [0.0]
    assert "GHOST" in caplog.text


def test_empty_hop_path_floors_at_zero(clock, tracker):
    msg = Message("M1")
    tracker.on_created(msg)
    tracker.on_transferred(msg, A, B, final_target=True)

    assert tracker.stats.hop_counts == [0]


def test_rtt_never_negative(clock, tracker):
    request = Message("REQ", creation_time=50.0)
    response = Message("RESP", hops=[B, A], request=request)
    tracker.on_created(response)

    clock.set_time(10.0)
    tracker.on_transferred(response, B, A, final_target=True)

    assert tracker.stats.rtts == [0.0]


def test_summary_helpers():
    """Test average/median/probabilities on the accumulator."""
    stats = MessageStats()
    assert math.isnan(average(stats.latencies))
    assert math.isnan(median(stats.latencies))
    assert stats.delivery_prob() == 0.0
    assert math.isnan(stats.overhead_ratio())

    for _ in range(4):
        stats.record_created(False)
    for _ in range(6):
        stats.record_relayed()
    stats.record_delivered(10.0, 1)
    stats.record_delivered(30.0, 3)

    assert average(stats.latencies) == 20.0
    assert median([1, 5, 2]) == 2.0
    assert stats.delivery_prob() == 0.5
    assert stats.overhead_ratio() == 2.0

    summary = stats.summary()
    assert list(summary)[:7] == ['created', 'started', 'relayed', 'aborted',
                                 'dropped', 'removed', 'delivered']
    assert summary['hopcount_avg'] == 2.0
