"""
Metrics collection for dtnreport.

Warm-up filtering, message lifecycle statistics and per-host occupancy.
"""

from dtnreport.metrics.warmup import WarmupFilter
from dtnreport.metrics.stats import MessageStats
from dtnreport.metrics.tracker import MessageLifecycleTracker
from dtnreport.metrics.occupancy import OccupancySnapshotStore, occupancy_mean_variance

__all__ = ['WarmupFilter', 'MessageStats', 'MessageLifecycleTracker',
           'OccupancySnapshotStore', 'occupancy_mean_variance']
