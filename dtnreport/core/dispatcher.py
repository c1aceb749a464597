"""
dispatcher.py - Simulation callback fan-out

Entry point the simulation engine drives. Advances the simulated clock and
forwards world ticks and message lifecycle events to explicitly registered
listeners.

DESIGN PHILOSOPHY:
- Single-threaded, synchronous: one callback at a time, in time order
- Explicit registration instead of listener discovery via inheritance
- A report whose output breaks is logged and skipped; the simulation and
  the other reports keep running
- Context manager: every registered report is closed on exit, including
  when the run ends with an exception
"""

import logging
from typing import List, Optional

from dtnreport.core.entities import Host, Message, SimClock
from dtnreport.core.listeners import MessageListener, UpdateListener
from dtnreport.report.sink import ReportOutputError

logger = logging.getLogger('dtnreport.dispatcher')


class ReportDispatcher:
    """
    Forwards simulation callbacks to registered listeners.

    Usage:
        clock = SimClock()
        with ReportDispatcher(clock) as dispatcher:
            for report in settings.build_reporters(clock):
                dispatcher.add_report(report)

            dispatcher.message_created(0.0, msg)
            dispatcher.world_tick(5.0, hosts)
            ...
            dispatcher.done()
    """

    def __init__(self, clock: Optional[SimClock] = None):
        self.clock = clock or SimClock()
        self.update_listeners: List[UpdateListener] = []
        self.message_listeners: List[MessageListener] = []
        self.failed_listeners: List[object] = []
        # Reports whose output this dispatcher releases on close()
        self.reports: List[object] = []

    def add_update_listener(self, listener: UpdateListener):
        self.update_listeners.append(listener)

    def add_message_listener(self, listener: MessageListener):
        self.message_listeners.append(listener)

    def add_report(self, report):
        """
        Register a report for the callbacks it subscribes to and take
        ownership of its output.

        Args:
            report: Reporter instance
        """
        if report.subscribes_to_updates():
            self.add_update_listener(report)
        if report.subscribes_to_messages():
            self.add_message_listener(report)
        self.reports.append(report)

    # Engine callbacks

    def world_tick(self, now: float, hosts: List[Host]):
        """Forward a world tick with the current active host set."""
        self.clock.set_time(now)
        for listener in self.update_listeners:
            self._deliver(listener, listener.updated, hosts)

    def message_created(self, now: float, message: Message):
        self.clock.set_time(now)
        for listener in self.message_listeners:
            self._deliver(listener, listener.new_message, message)

    def message_transfer_started(self, now: float, message: Message,
                                 from_host: Host, to_host: Host):
        self.clock.set_time(now)
        for listener in self.message_listeners:
            self._deliver(listener, listener.message_transfer_started,
                          message, from_host, to_host)

    def message_transferred(self, now: float, message: Message,
                            from_host: Host, to_host: Host, final_target: bool):
        self.clock.set_time(now)
        for listener in self.message_listeners:
            self._deliver(listener, listener.message_transferred,
                          message, from_host, to_host, final_target)

    def message_transfer_aborted(self, now: float, message: Message,
                                 from_host: Host, to_host: Host):
        self.clock.set_time(now)
        for listener in self.message_listeners:
            self._deliver(listener, listener.message_transfer_aborted,
                          message, from_host, to_host)

    def message_deleted(self, now: float, message: Message, where: Host, dropped: bool):
        self.clock.set_time(now)
        for listener in self.message_listeners:
            self._deliver(listener, listener.message_deleted, message, where, dropped)

    def done(self):
        """
        End of run: let every report write its summary, then release outputs.
        """
        try:
            for report in self.reports:
                self._deliver(report, report.done)
        finally:
            self.close()

    def close(self):
        """Release the output of every registered report (safe to repeat)."""
        for report in self.reports:
            report.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def _deliver(self, listener, callback, *args):
        # A report with broken output gets no further callbacks
        if listener in self.failed_listeners:
            return
        try:
            callback(*args)
        except ReportOutputError as e:
            logger.error(f"Report {getattr(listener, 'name', listener)} output failed: {e}")
            self.failed_listeners.append(listener)
