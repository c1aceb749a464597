"""
warmup.py - Warm-up exclusion

Tracks the warm-up window and the messages created inside it.

Messages created during warm-up are excluded from every statistic for the
rest of the run, even when their later events happen after warm-up ends.
"""

from typing import Set


class WarmupFilter:
    """
    Warm-up window and exclusion set.

    Attributes:
        warmup_time: End of the warm-up window in simulated seconds
        excluded_ids: Ids of messages created during warm-up (never shrinks)
    """

    def __init__(self, warmup_time: float = 0.0):
        if warmup_time < 0:
            raise ValueError(f"warmup_time must be non-negative, got {warmup_time}")
        self.warmup_time = float(warmup_time)
        self.excluded_ids: Set[str] = set()

    def is_warmup_active(self, now: float) -> bool:
        """True while simulated time is inside the warm-up window."""
        return now < self.warmup_time

    def register_warmup_id(self, message_id: str):
        """Exclude a message from all statistics for the rest of the run."""
        self.excluded_ids.add(message_id)

    def is_excluded(self, message_id: str) -> bool:
        """True if the message was created during warm-up."""
        return message_id in self.excluded_ids
