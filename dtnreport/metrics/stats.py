"""
stats.py - Message delivery statistics

Defines the run-wide accumulator for message lifecycle statistics.

DESIGN PHILOSOPHY:
- Simple counters and sample lists
- One instance per report, created at run start
- Mutated only by the lifecycle tracker, read by the reporter
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

import numpy as np


def average(values: Sequence[float]) -> float:
    """
    Mean of the samples.

    Returns:
        Mean value, or NaN if there are no samples
    """
    if len(values) == 0:
        return math.nan
    return float(np.mean(values))


def median(values: Sequence[float]) -> float:
    """
    Median of the samples.

    Returns:
        Median value, or NaN if there are no samples
    """
    if len(values) == 0:
        return math.nan
    return float(np.median(values))


@dataclass
class MessageStats:
    """
    Message statistics for the whole run.

    Counters:
        created, started, relayed, delivered, aborted, dropped, removed,
        response_created, response_delivered

    Sample lists:
        latencies: Creation-to-delivery time of delivered messages
        hop_counts: Relay transfers per delivered message
        buffer_times: Time messages spent in a buffer before removal
        rtts: Round-trip times of delivered responses
    """

    created: int = 0
    started: int = 0
    relayed: int = 0
    delivered: int = 0
    aborted: int = 0
    dropped: int = 0
    removed: int = 0
    response_created: int = 0
    response_delivered: int = 0

    latencies: List[float] = field(default_factory=list)
    hop_counts: List[int] = field(default_factory=list)
    buffer_times: List[float] = field(default_factory=list)
    rtts: List[float] = field(default_factory=list)

    def record_created(self, wants_response: bool):
        """Record a message being created."""
        self.created += 1
        if wants_response:
            self.response_created += 1

    def record_started(self):
        self.started += 1

    def record_relayed(self):
        self.relayed += 1

    def record_delivered(self, latency: float, hop_count: int):
        """
        Record a message reaching its final destination.

        Args:
            latency: Time from creation to delivery
            hop_count: Relay transfers the message traversed
        """
        self.delivered += 1
        self.latencies.append(latency)
        self.hop_counts.append(hop_count)

    def record_response_delivered(self, rtt: float):
        """Record a response reaching the requester."""
        self.response_delivered += 1
        self.rtts.append(rtt)

    def record_aborted(self):
        self.aborted += 1

    def record_deleted(self, dropped: bool):
        """Record a message removed from a buffer, counting drops separately."""
        self.removed += 1
        if dropped:
            self.dropped += 1

    def record_buffer_time(self, buffer_time: float):
        self.buffer_times.append(buffer_time)

    def delivery_prob(self) -> float:
        """Fraction of created messages that were delivered (0.0 if none created)."""
        if self.created == 0:
            return 0.0
        return self.delivered / self.created

    def response_prob(self) -> float:
        """Fraction of requested responses that were delivered."""
        if self.response_created == 0:
            return 0.0
        return self.response_delivered / self.response_created

    def overhead_ratio(self) -> float:
        """Extra relays per delivered message, NaN if nothing was delivered."""
        if self.delivered == 0:
            return math.nan
        return (self.relayed - self.delivered) / self.delivered

    def summary(self) -> Dict[str, float]:
        """
        End-of-run summary in the order it is written.

        Returns:
            Dictionary of summary field name -> value
        """
        return {
            'created': self.created,
            'started': self.started,
            'relayed': self.relayed,
            'aborted': self.aborted,
            'dropped': self.dropped,
            'removed': self.removed,
            'delivered': self.delivered,
            'delivery_prob': self.delivery_prob(),
            'response_prob': self.response_prob(),
            'overhead_ratio': self.overhead_ratio(),
            'latency_avg': average(self.latencies),
            'latency_med': median(self.latencies),
            'hopcount_avg': average(self.hop_counts),
            'hopcount_med': median(self.hop_counts),
            'buffertime_avg': average(self.buffer_times),
            'buffertime_med': median(self.buffer_times),
            'rtt_avg': average(self.rtts),
            'rtt_med': median(self.rtts),
        }
