"""
tracker.py - Message lifecycle tracking

Consumes message lifecycle callbacks and updates a MessageStats accumulator.

State per message id:
    Unseen -> Created -> {Delivered | Aborted | Deleted}

DESIGN PHILOSOPHY:
- Warm-up messages are filtered before any counter is touched
- Partial histories (events without a prior create) are expected around
  the warm-up boundary: log a warning, never raise
- Creation timestamps are kept for the whole run so that repeated
  deliveries of replicated messages still find their creation time
"""

import logging
from typing import Dict, Optional

from dtnreport.core.entities import Host, Message, SimClock
from dtnreport.metrics.stats import MessageStats
from dtnreport.metrics.warmup import WarmupFilter

logger = logging.getLogger('dtnreport.tracker')


class MessageLifecycleTracker:
    """
    Correlates message lifecycle events into delivery statistics.

    Usage:
        clock = SimClock()
        tracker = MessageLifecycleTracker(clock, WarmupFilter(warmup_time=100))

        clock.set_time(120.0)
        tracker.on_created(msg)
        ...
        clock.set_time(180.0)
        tracker.on_transferred(msg, relay, dest, final_target=True)

        tracker.stats.latencies  # [60.0]
    """

    def __init__(self, clock: SimClock, warmup: Optional[WarmupFilter] = None,
                 stats: Optional[MessageStats] = None):
        """
        Initialize tracker.

        Args:
            clock: Simulated time source
            warmup: Warm-up filter (default: no warm-up)
            stats: Accumulator to update (default: a fresh MessageStats)
        """
        self.clock = clock
        self.warmup = warmup or WarmupFilter()
        self.stats = stats or MessageStats()

        # message id -> creation time (simulated seconds)
        self.creation_times: Dict[str, float] = {}

    def on_created(self, message: Message):
        """Record a new message, or exclude it if warm-up is active."""
        now = self.clock.get_time()
        if self.warmup.is_warmup_active(now):
            self.warmup.register_warmup_id(message.id)
            return

        self.creation_times[message.id] = now
        self.stats.record_created(message.response_size > 0)

    def on_transfer_started(self, message: Message, from_host: Host, to_host: Host):
        if self.warmup.is_excluded(message.id):
            return
        self.stats.record_started()

    def on_transferred(self, message: Message, from_host: Host, to_host: Host,
                       final_target: bool):
        """
        Record a completed transfer and, at the destination, a delivery.

        Args:
            message: Transferred message
            from_host: Sending host
            to_host: Receiving host
            final_target: True if to_host is the destination
        """
        if self.warmup.is_excluded(message.id):
            return

        self.stats.record_relayed()
        if not final_target:
            return

        now = self.clock.get_time()
        created_at = self.creation_times.get(message.id)
        if created_at is None:
            logger.warning(f"Delivery of unknown message {message.id} at t={now}, "
                           f"recording zero latency")
            created_at = now

        hop_count = message.get_hop_count()
        if hop_count < 0:
            logger.warning(f"Message {message.id} delivered with empty hop path")
            hop_count = 0

        self.stats.record_delivered(now - created_at, hop_count)

        if message.is_response():
            self.stats.record_response_delivered(self._round_trip_time(message, now))

    def on_transfer_aborted(self, message: Message, from_host: Host, to_host: Host):
        if self.warmup.is_excluded(message.id):
            return
        self.stats.record_aborted()

    def on_deleted(self, message: Message, where: Host, dropped: bool):
        """Record a removal from a host's buffer (and a drop if dropped)."""
        if self.warmup.is_excluded(message.id):
            return

        self.stats.record_deleted(dropped)
        if message.receive_time is not None:
            buffer_time = self.clock.get_time() - message.receive_time
            self.stats.record_buffer_time(max(buffer_time, 0.0))

    def _round_trip_time(self, response: Message, now: float) -> float:
        """Delivery time of a response minus creation time of its request."""
        request = response.request
        rtt = now - request.creation_time
        if rtt < 0:
            logger.warning(f"Response {response.id} delivered before its request "
                           f"{request.id} was created, RTT set to 0")
            return 0.0
        return rtt
