"""
interval_gate.py - Report emission gate

Suppresses report emission until at least `interval` simulated seconds have
passed since the last emission.
"""


class ObservationScheduler:
    """
    Interval gate shared by every trigger source of one report.

    The decision and the update of last_record happen in the same call, so
    two triggers at the same simulated time can never both emit (unless the
    interval is 0).
    """

    def __init__(self, interval: float, last_record: float = 0.0):
        """
        Initialize scheduler.

        Args:
            interval: Minimum simulated seconds between emissions (>= 0)
            last_record: Time of the previous emission
        """
        if interval < 0:
            raise ValueError(f"interval must be non-negative, got {interval}")
        self.interval = interval
        self.last_record = last_record

    def should_emit(self, now: float) -> bool:
        """
        Decide whether a report should be emitted at time now.

        Returns:
            True (and records now as the last emission) iff
            now - last_record >= interval
        """
        if now < self.last_record:
            return False
        if now - self.last_record >= self.interval:
            self.last_record = now
            return True
        return False
