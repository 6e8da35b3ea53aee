"""Scheduler statistics from ``sdiag``."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass, fields

from .command import run
from .exposition import Collector, Desc, Metric, const_metric

_WS = "[ \t\n\f\r]"

# Checked in this order against the text before the first colon.
_PATTERNS = (
    ("threads", re.compile(r"Server thread")),
    ("queue_size", re.compile(r"Agent queue")),
    ("dbd_queue_size", re.compile(r"DBD Agent")),
    ("last_cycle", re.compile(rf"{_WS}+Last cycle\Z")),
    ("mean_cycle", re.compile(rf"{_WS}+Mean cycle\Z")),
    ("cycle_per_minute", re.compile(rf"{_WS}+Cycles per")),
    ("backfill_depth_mean", re.compile(rf"{_WS}+Depth Mean\Z")),
    (
        "total_backfilled_jobs_since_start",
        re.compile(rf"{_WS}+Total backfilled jobs \(since last slurm start\)"),
    ),
    (
        "total_backfilled_jobs_since_cycle",
        re.compile(rf"{_WS}+Total backfilled jobs \(since last stats cycle start\)"),
    ),
    (
        "total_backfilled_heterogeneous",
        re.compile(rf"{_WS}+Total backfilled heterogeneous job components"),
    ),
)


def _parse_float(text: str) -> float:
    if not text or text != text.strip() or "_" in text:
        return 0.0
    try:
        return float(text)
    except ValueError:
        return 0.0


@dataclass
class SchedulerMetrics:
    threads: float = 0.0
    queue_size: float = 0.0
    dbd_queue_size: float = 0.0
    last_cycle: float = 0.0
    mean_cycle: float = 0.0
    cycle_per_minute: float = 0.0
    backfill_last_cycle: float = 0.0
    backfill_mean_cycle: float = 0.0
    backfill_depth_mean: float = 0.0
    total_backfilled_jobs_since_start: float = 0.0
    total_backfilled_jobs_since_cycle: float = 0.0
    total_backfilled_heterogeneous: float = 0.0


def scheduler_data() -> str:
    return run("sdiag", [])


def parse_scheduler_metrics(text: str) -> SchedulerMetrics:
    """Extract the scheduler and backfill statistics from ``sdiag`` output.

    ``Last cycle`` and ``Mean cycle`` appear twice: the first occurrence sets
    both the main and the backfill value, later ones only the backfill value.
    """
    metrics = SchedulerMetrics()
    seen_last_cycle = False
    seen_mean_cycle = False
    for line in text.split("\n"):
        if ":" not in line:
            continue
        parts = line.split(":")
        label = parts[0]
        name = next(
            (key for key, pattern in _PATTERNS if pattern.match(label)), None
        )
        if name is None:
            continue
        value = _parse_float(parts[1].strip())
        if name == "last_cycle":
            if not seen_last_cycle:
                metrics.last_cycle = value
                seen_last_cycle = True
            metrics.backfill_last_cycle = value
        elif name == "mean_cycle":
            if not seen_mean_cycle:
                metrics.mean_cycle = value
                seen_mean_cycle = True
            metrics.backfill_mean_cycle = value
        else:
            setattr(metrics, name, value)
    return metrics


def scheduler_get_metrics() -> SchedulerMetrics:
    return parse_scheduler_metrics(scheduler_data())


_PREFIX = "Information provided by the Slurm sdiag command, "


class SchedulerCollector(Collector):
    def __init__(self, source: Callable[[], str] = scheduler_data) -> None:
        self._source = source
        self.threads = Desc(
            "slurm_scheduler_threads", _PREFIX + "number of scheduler threads "
        )
        self.queue_size = Desc(
            "slurm_scheduler_queue_size", _PREFIX + "length of the scheduler queue"
        )
        self.dbd_queue_size = Desc(
            "slurm_scheduler_dbd_queue_size", _PREFIX + "length of the DBD agent queue"
        )
        self.last_cycle = Desc(
            "slurm_scheduler_last_cycle",
            _PREFIX + "scheduler last cycle time in (microseconds)",
        )
        self.mean_cycle = Desc(
            "slurm_scheduler_mean_cycle",
            _PREFIX + "scheduler mean cycle time in (microseconds)",
        )
        self.cycle_per_minute = Desc(
            "slurm_scheduler_cycle_per_minute",
            _PREFIX + "number scheduler cycles per minute",
        )
        self.backfill_last_cycle = Desc(
            "slurm_scheduler_backfill_last_cycle",
            _PREFIX + "scheduler backfill last cycle time in (microseconds)",
        )
        self.backfill_mean_cycle = Desc(
            "slurm_scheduler_backfill_mean_cycle",
            _PREFIX + "scheduler backfill mean cycle time in (microseconds)",
        )
        self.backfill_depth_mean = Desc(
            "slurm_scheduler_backfill_depth_mean",
            _PREFIX + "scheduler backfill mean depth",
        )
        self.total_backfilled_jobs_since_start = Desc(
            "slurm_scheduler_backfilled_jobs_since_start_total",
            _PREFIX
            + "number of jobs started thanks to backfilling since last slurm start",
        )
        self.total_backfilled_jobs_since_cycle = Desc(
            "slurm_scheduler_backfilled_jobs_since_cycle_total",
            _PREFIX
            + "number of jobs started thanks to backfilling since last time stats where reset",
        )
        self.total_backfilled_heterogeneous = Desc(
            "slurm_scheduler_backfilled_heterogeneous_total",
            _PREFIX
            + "number of heterogeneous job components started thanks to backfilling "
            "since last Slurm start",
        )

    def describe(self) -> Iterator[Desc]:
        for item in fields(SchedulerMetrics):
            yield getattr(self, item.name)

    def collect(self) -> Iterator[Metric]:
        metrics = parse_scheduler_metrics(self._source())
        for item in fields(SchedulerMetrics):
            yield const_metric(getattr(self, item.name), getattr(metrics, item.name))