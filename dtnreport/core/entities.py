"""
entities.py - Simulation reference types

Lightweight stand-ins for the objects the simulation engine hands to reports.

DESIGN PHILOSOPHY:
- Reports hold references only, never own simulation state
- Hosts are ordered by address so report output is deterministic
- Simulated time lives in an explicit SimClock instance (no global clock)
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(order=True)
class Host:
    """
    Reference to a simulated node.

    Ordering and equality use the address only, so two references to the
    same node compare equal even if their occupancy readings differ.

    Attributes:
        address: Unique, totally ordered host identity
        name: Display name used in report rows (e.g. "n12")
        buffer_occupancy: Current buffer fill percentage
    """
    address: int
    name: str = field(default="", compare=False)
    buffer_occupancy: float = field(default=0.0, compare=False)

    def __post_init__(self):
        if not self.name:
            self.name = f"n{self.address}"

    def __hash__(self):
        return hash(self.address)

    def __str__(self):
        return self.name

    def get_buffer_occupancy(self) -> float:
        """Return the buffer occupancy percentage [0, 100]."""
        return self.buffer_occupancy


@dataclass
class Message:
    """
    Reference to a simulated message.

    Attributes:
        id: Message identity
        creation_time: Simulated time the message was created
        hops: Hosts the message has visited, originating host first
        response_size: Size of the requested response (0 = no response wanted)
        request: Originating request when this message is a response
        receive_time: Simulated time the current holder received the message
    """
    id: str
    creation_time: float = 0.0
    hops: List[Host] = field(default_factory=list)
    response_size: int = 0
    request: Optional['Message'] = None
    receive_time: Optional[float] = None

    def is_response(self) -> bool:
        """True if this message answers an earlier request."""
        return self.request is not None

    def get_hop_count(self) -> int:
        """Number of relay transfers, excluding the originating host."""
        return len(self.hops) - 1


class SimClock:
    """
    Simulated time source shared by one dispatcher and its reports.

    Time only moves forward; set_time() rejects going backwards.
    """

    def __init__(self, start_time: float = 0.0):
        self._time = float(start_time)

    def get_time(self) -> float:
        """Current simulated time in seconds."""
        return self._time

    def set_time(self, now: float):
        """
        Advance the clock.

        Args:
            now: New simulated time in seconds

        Raises:
            ValueError: If now is earlier than the current time
        """
        if now < self._time:
            raise ValueError(f"Simulated time cannot go backwards: {now} < {self._time}")
        self._time = float(now)
