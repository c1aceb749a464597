"""
occupancy.py - Per-host buffer occupancy

Keeps the last observed buffer occupancy of every host and computes the
occupancy mean and variance across a host set.

Known limitation: a host that stops appearing in world ticks keeps its last
reading forever; entries are never pruned.
"""

import math
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from dtnreport.core.entities import Host

MAX_OCCUPANCY = 100.0


def clamp_occupancy(value: float) -> float:
    """Clamp an occupancy reading to [0, 100]."""
    return min(max(value, 0.0), MAX_OCCUPANCY)


def read_buffer_occupancy(host: Host) -> float:
    """Default occupancy reader: the host's own capability."""
    return host.get_buffer_occupancy()


def occupancy_mean_variance(values: Iterable[float]) -> Tuple[float, float]:
    """
    Mean and variance of occupancy percentages.

    Values are clamped to [0, 100] first. The variance keeps the /100
    normalization of the percentage scale:

        mean     = sum(x) / n
        variance = (sum(x^2) / 100) / n - mean^2 / 100

    Args:
        values: Occupancy percentages, one per host

    Returns:
        (mean, variance), or (NaN, NaN) for an empty host set
    """
    total = 0.0
    total_sq = 0.0
    n = 0
    for value in values:
        x = clamp_occupancy(value)
        total += x
        total_sq += (x * x) / 100.0
        n += 1

    if n == 0:
        return math.nan, math.nan

    mean = total / n
    variance = total_sq / n - (mean * mean) / 100.0
    return mean, variance


class OccupancySnapshotStore:
    """
    Last observed occupancy per host, ordered by host address.

    Entries are overwritten in place on every observation and never removed.
    """

    def __init__(self):
        # host address -> (host name, clamped occupancy)
        self._entries: Dict[int, Tuple[str, float]] = {}

    def observe(self, hosts: Iterable[Host],
                read_occupancy: Optional[Callable[[Host], float]] = None):
        """
        Read and store the occupancy of every host.

        Args:
            hosts: Current host set
            read_occupancy: Reader for a host's occupancy
                            (default: host.get_buffer_occupancy())
        """
        reader = read_occupancy or read_buffer_occupancy
        for host in hosts:
            self._entries[host.address] = (str(host), clamp_occupancy(reader(host)))

    def rows(self) -> List[Tuple[str, float]]:
        """(host name, occupancy) pairs sorted by host address."""
        return [self._entries[address] for address in sorted(self._entries)]

    def values(self) -> List[float]:
        return [occupancy for _, occupancy in self.rows()]

    def __len__(self):
        return len(self._entries)

    def __contains__(self, host: Host):
        return host.address in self._entries
