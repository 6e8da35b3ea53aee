"""Cluster-wide CPU states from ``sinfo``."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, fields

from .command import run
from .exposition import Collector, Desc, Metric, const_metric


def _parse_float(text: str) -> float:
    if not text or text != text.strip() or "_" in text:
        return 0.0
    try:
        return float(text)
    except ValueError:
        return 0.0


@dataclass
class CPUsMetrics:
    alloc: float = 0.0
    idle: float = 0.0
    other: float = 0.0
    total: float = 0.0


def parse_cpus_metrics(text: str) -> CPUsMetrics:
    """Parse ``alloc/idle/other/total`` as printed by ``sinfo -o %C``."""
    if "/" not in text:
        return CPUsMetrics()
    parts = text.strip().split("/")
    if len(parts) < 4:
        raise ValueError(f"malformed CPU states: {text.strip()!r}")
    return CPUsMetrics(*(_parse_float(part) for part in parts[:4]))


def cpus_data() -> str:
    return run("sinfo", ["-h", "-o %C"])


def cpus_get_metrics() -> CPUsMetrics:
    return parse_cpus_metrics(cpus_data())


class CPUsCollector(Collector):
    def __init__(self, source: Callable[[], str] = cpus_data) -> None:
        self._source = source
        self.alloc = Desc("slurm_cpus_alloc", "Allocated CPUs")
        self.idle = Desc("slurm_cpus_idle", "Idle CPUs")
        self.other = Desc("slurm_cpus_other", "Mix CPUs")
        self.total = Desc("slurm_cpus_total", "Total CPUs")

    def describe(self) -> Iterator[Desc]:
        yield from (self.alloc, self.idle, self.other, self.total)

    def collect(self) -> Iterator[Metric]:
        metrics = parse_cpus_metrics(self._source())
        for item in fields(CPUsMetrics):
            yield const_metric(getattr(self, item.name), getattr(metrics, item.name))