"""
reporter.py - Buffer occupancy / message statistics reporter

One Reporter class covers both report shapes; which one a Reporter produces
is configuration, not subclassing:

- per_host:  one "<host>\\t<occupancy>" row per host, ordered by host address
             (former per-node occupancy report, default interval 3600s)
- aggregate: one "<time> <delivered> <mean> <variance> <latency_avg>
             <hopcount_avg> <rtt_avg>" line
             (former message-triggered statistics report, default interval 5s)

Both shapes share one ObservationScheduler per instance, whichever trigger
sources (world ticks, message transfers) are enabled.

DESIGN PHILOSOPHY:
- Each accepted trigger writes current data exactly once
- Accumulators live in the instance, created at run start
- Write failures surface as ReportOutputError for this report only
"""

import logging
import math
from typing import Callable, List, Optional

from dtnreport.config.settings import (
    ReportInstanceConfig,
    SHAPE_AGGREGATE,
    SHAPE_PER_HOST,
    TRIGGER_MESSAGE_TRANSFER,
    TRIGGER_WORLD_TICK,
)
from dtnreport.core.entities import Host, Message, SimClock
from dtnreport.core.listeners import MessageListener, UpdateListener
from dtnreport.metrics.occupancy import (
    OccupancySnapshotStore,
    occupancy_mean_variance,
    read_buffer_occupancy,
)
from dtnreport.metrics.stats import average
from dtnreport.metrics.tracker import MessageLifecycleTracker
from dtnreport.metrics.warmup import WarmupFilter
from dtnreport.report.interval_gate import ObservationScheduler
from dtnreport.report.sink import ReportSink

logger = logging.getLogger('dtnreport.reporter')


def format_value(value, precision: int = 4) -> str:
    """
    Format a report value.

    Integers are written as-is, floats with `precision` decimals, NaN as "NaN".
    """
    if isinstance(value, int):
        return str(value)
    if math.isnan(value):
        return "NaN"
    return f"{value:.{precision}f}"


class Reporter(UpdateListener, MessageListener):
    """
    Buffer occupancy and message statistics report.

    Usage:
        config = ReportInstanceConfig(name="occupancy", shape="aggregate")
        with Reporter(config, clock, MemoryReportSink()) as report:
            dispatcher.add_report(report)
            ...  # drive the simulation
            report.done()
    """

    def __init__(self, config: ReportInstanceConfig, clock: SimClock, sink: ReportSink,
                 warmup: Optional[WarmupFilter] = None,
                 read_occupancy: Optional[Callable[[Host], float]] = None):
        """
        Initialize reporter.

        Args:
            config: Shape, interval, triggers and precision of this report
            clock: Simulated time source
            sink: Output for report lines (owned by the reporter from now on)
            warmup: Warm-up filter (default: no warm-up)
            read_occupancy: Occupancy reader (default: host.get_buffer_occupancy())
        """
        self.config = config
        self.clock = clock
        self.sink = sink
        self.read_occupancy = read_occupancy or read_buffer_occupancy

        self.scheduler = ObservationScheduler(config.occupancy_interval)
        self.snapshot = OccupancySnapshotStore()
        self.tracker = MessageLifecycleTracker(clock, warmup)

        # Host set of the most recent world tick
        self.hosts: List[Host] = []
        self.emissions = 0

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def stats(self):
        return self.tracker.stats

    def subscribes_to_updates(self) -> bool:
        """World ticks carry the host set, which every shape reads."""
        return True

    def subscribes_to_messages(self) -> bool:
        return (self.config.shape == SHAPE_AGGREGATE
                or TRIGGER_MESSAGE_TRANSFER in self.config.triggers)

    # UpdateListener

    def updated(self, hosts: List[Host]):
        self.hosts = list(hosts)
        if TRIGGER_WORLD_TICK in self.config.triggers:
            self._maybe_emit()

    # MessageListener

    def new_message(self, message: Message):
        self.tracker.on_created(message)

    def message_transfer_started(self, message: Message, from_host: Host, to_host: Host):
        self.tracker.on_transfer_started(message, from_host, to_host)

    def message_transferred(self, message: Message, from_host: Host, to_host: Host,
                            final_target: bool):
        self.tracker.on_transferred(message, from_host, to_host, final_target)
        if TRIGGER_MESSAGE_TRANSFER in self.config.triggers:
            self._maybe_emit()

    def message_transfer_aborted(self, message: Message, from_host: Host, to_host: Host):
        self.tracker.on_transfer_aborted(message, from_host, to_host)

    def message_deleted(self, message: Message, where: Host, dropped: bool):
        self.tracker.on_deleted(message, where, dropped)

    # Output

    def _maybe_emit(self):
        if self.scheduler.should_emit(self.clock.get_time()):
            self.emit()

    def emit(self):
        """Write one report entry for the current simulated time."""
        if self.config.shape == SHAPE_PER_HOST:
            text = self.per_host_block()
        else:
            text = self.aggregate_line()

        self.emissions += 1
        if not text:
            logger.debug(f"{self.name}: no hosts observed yet at t={self.clock.get_time()}")
            return
        self.sink.write(text)

    def per_host_block(self) -> str:
        """Refresh the snapshot from the current hosts and render one row per host."""
        self.snapshot.observe(self.hosts, self.read_occupancy)
        precision = self.config.precision
        return "\n".join(f"{name}\t{format_value(occupancy, precision)}"
                         for name, occupancy in self.snapshot.rows())

    def aggregate_line(self) -> str:
        """Render the statistics line for the current simulated time."""
        mean, variance = occupancy_mean_variance(
            self.read_occupancy(h) for h in self.hosts)
        stats = self.stats
        fields = [
            self.clock.get_time(),
            stats.delivered,
            mean,
            variance,
            average(stats.latencies),
            average(stats.hop_counts),
            average(stats.rtts),
        ]
        return " ".join(format_value(f, self.config.precision) for f in fields)

    def done(self):
        """
        Finish the run: write the end-of-run summary (aggregate shape only)
        and release the output.
        """
        try:
            if self.config.shape == SHAPE_AGGREGATE:
                self.sink.write(self.summary_block())
        finally:
            self.close()

    def summary_block(self) -> str:
        lines = [f"Message stats for report {self.name}",
                 f"sim_time: {format_value(self.clock.get_time(), self.config.precision)}"]
        for key, value in self.stats.summary().items():
            lines.append(f"{key}: {format_value(value, self.config.precision)}")
        return "\n".join(lines)

    def close(self):
        self.sink.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
