"""
settings.py - YAML Report Settings Parser

Parses report configuration from YAML files.

Design philosophy:
- Keep it simple: minimal validation, no schema framework
- Fail fast on structural errors (missing sections, unknown shapes)
- The one exception: a missing or invalid occupancy_interval silently falls
  back to the shape's default, never to a negative value

Example YAML:
    simulation:
      warmup_s: 100

    reports:
      report_dir: reports   # omit for in-memory output
      precision: 4
      instances:
        - name: occupancy_per_node
          shape: per_host          # default interval 3600, triggers [world_tick]
          occupancy_interval: 600

        - name: occupancy_stats
          shape: aggregate         # default interval 5, triggers [message_transfer]
          triggers: [world_tick, message_transfer]
"""

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger('dtnreport.settings')

SHAPE_PER_HOST = "per_host"
SHAPE_AGGREGATE = "aggregate"

TRIGGER_WORLD_TICK = "world_tick"
TRIGGER_MESSAGE_TRANSFER = "message_transfer"

DEFAULT_INTERVALS = {
    SHAPE_PER_HOST: 3600,
    SHAPE_AGGREGATE: 5,
}

DEFAULT_TRIGGERS = {
    SHAPE_PER_HOST: [TRIGGER_WORLD_TICK],
    SHAPE_AGGREGATE: [TRIGGER_MESSAGE_TRANSFER],
}

DEFAULT_PRECISION = 4


def resolve_interval(value: Any, shape: str) -> float:
    """
    Turn a configured occupancy_interval into a usable interval.

    Args:
        value: Raw configured value (may be None, negative or garbage)
        shape: Report shape, selects the default

    Returns:
        The configured interval if it is a non-negative number,
        otherwise the shape's default
    """
    default = DEFAULT_INTERVALS[shape]
    if value is None or isinstance(value, bool):
        return default

    try:
        interval = float(value)
    except (TypeError, ValueError):
        logger.debug(f"Invalid occupancy_interval {value!r}, using default {default}")
        return default

    if interval < 0 or math.isnan(interval):
        logger.debug(f"Invalid occupancy_interval {value!r}, using default {default}")
        return default

    if interval.is_integer():
        return int(interval)
    return interval


@dataclass
class ReportInstanceConfig:
    """
    Configuration of one report instance.

    Attributes:
        name: Instance name (also the output file stem)
        shape: "per_host" or "aggregate"
        occupancy_interval: Minimum simulated seconds between emissions
                            (None / invalid -> shape default)
        triggers: Trigger sources ("world_tick", "message_transfer")
        precision: Decimals for float output
    """
    name: str
    shape: str = SHAPE_AGGREGATE
    occupancy_interval: Any = None
    triggers: Optional[List[str]] = None
    precision: int = DEFAULT_PRECISION

    def __post_init__(self):
        """Validate and fill defaults."""
        if not self.name:
            raise ValueError("Report instance name must not be empty")

        if self.shape not in DEFAULT_INTERVALS:
            raise ValueError(
                f"Report {self.name}: shape must be '{SHAPE_PER_HOST}' or "
                f"'{SHAPE_AGGREGATE}', got '{self.shape}'")

        self.occupancy_interval = resolve_interval(self.occupancy_interval, self.shape)

        if self.triggers is None:
            self.triggers = list(DEFAULT_TRIGGERS[self.shape])
        if not self.triggers:
            raise ValueError(f"Report {self.name}: at least one trigger is required")
        for trigger in self.triggers:
            if trigger not in (TRIGGER_WORLD_TICK, TRIGGER_MESSAGE_TRANSFER):
                raise ValueError(
                    f"Report {self.name}: trigger must be '{TRIGGER_WORLD_TICK}' or "
                    f"'{TRIGGER_MESSAGE_TRANSFER}', got '{trigger}'")

        if self.precision < 0:
            raise ValueError(f"Report {self.name}: precision must be non-negative, got {self.precision}")


@dataclass
class ReportSettings:
    """
    Report settings for one simulation run.

    Attributes:
        warmup_s: Warm-up window length in simulated seconds
        report_dir: Directory for report files (None = in-memory output)
        instances: Report instances to create
    """
    warmup_s: float = 0.0
    report_dir: Optional[str] = None
    instances: List[ReportInstanceConfig] = field(default_factory=list)

    def __post_init__(self):
        if self.warmup_s < 0:
            raise ValueError(f"warmup_s must be non-negative, got {self.warmup_s}")

        names = [instance.name for instance in self.instances]
        if len(names) != len(set(names)):
            raise ValueError(f"Report instance names must be unique, got {names}")

    def build_reporters(self, clock) -> list:
        """
        Create one Reporter (with its own sink and warm-up filter) per instance.

        Args:
            clock: SimClock shared with the dispatcher

        Returns:
            List of Reporter objects, in configuration order
        """
        from dtnreport.metrics.warmup import WarmupFilter
        from dtnreport.report.reporter import Reporter
        from dtnreport.report.sink import open_report_sink

        reporters = []
        try:
            for instance in self.instances:
                sink = open_report_sink(self.report_dir, instance.name)
                reporters.append(Reporter(instance, clock, sink, WarmupFilter(self.warmup_s)))
        except BaseException:
            # Nothing owns the already opened outputs yet
            for reporter in reporters:
                reporter.close()
            raise
        return reporters


def load_report_settings(yaml_path: str) -> ReportSettings:
    """
    Load report settings from YAML file.

    Args:
        yaml_path: Path to YAML settings file

    Returns:
        ReportSettings object with parsed configuration

    Raises:
        FileNotFoundError: If YAML file doesn't exist
        ValueError: If required fields are missing or invalid
        yaml.YAMLError: If YAML syntax is invalid
    """
    path = Path(yaml_path)
    if not path.exists():
        raise FileNotFoundError(f"Settings file not found: {yaml_path}")

    with open(path, 'r') as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML syntax in {yaml_path}: {e}")

    if not isinstance(data, dict):
        raise ValueError(f"Settings file must contain a YAML dict, got {type(data)}")

    # Simulation section is optional (no warm-up)
    sim = data.get('simulation') or {}
    if not isinstance(sim, dict):
        raise ValueError("'simulation' section must be a dict")
    warmup_s = float(sim.get('warmup_s', 0.0))

    if 'reports' not in data:
        raise ValueError("Missing required section: 'reports'")

    reports = data['reports']
    if not isinstance(reports, dict):
        raise ValueError("'reports' section must be a dict")

    report_dir = reports.get('report_dir')
    precision = int(reports.get('precision', DEFAULT_PRECISION))

    instance_list = reports.get('instances')
    if not isinstance(instance_list, list) or not instance_list:
        raise ValueError("reports.instances must be a non-empty list")

    instances = []
    for i, raw in enumerate(instance_list):
        instances.append(_parse_instance(i, raw, precision))

    return ReportSettings(
        warmup_s=warmup_s,
        report_dir=str(report_dir) if report_dir is not None else None,
        instances=instances
    )


def _parse_instance(index: int, raw: Dict[str, Any], precision: int) -> ReportInstanceConfig:
    if not isinstance(raw, dict):
        raise ValueError(f"Report {index} must be a dict, got {type(raw)}")

    if 'name' not in raw:
        raise ValueError(f"Report {index}: Missing required field 'name'")

    triggers = raw.get('triggers')
    if triggers is not None and not isinstance(triggers, list):
        triggers = [triggers]

    return ReportInstanceConfig(
        name=str(raw['name']),
        shape=raw.get('shape', SHAPE_AGGREGATE),
        occupancy_interval=raw.get('occupancy_interval'),
        triggers=triggers,
        precision=int(raw.get('precision', precision))
    )
