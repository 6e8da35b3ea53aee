"""CPU states and pending jobs per partition from ``sinfo`` and ``squeue``."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass

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
class PartitionMetrics:
    allocated: float = 0.0
    idle: float = 0.0
    other: float = 0.0
    pending: float = 0.0
    total: float = 0.0


def partitions_data() -> str:
    return run("sinfo", ["-h", "-o%R,%C"])


def partitions_pending_jobs_data() -> str:
    return run("squeue", ["-a", "-r", "-h", "-o%P", "--states=PENDING"])


def parse_partitions_metrics(cpus_text: str, pending_text: str) -> dict[str, PartitionMetrics]:
    """Combine ``partition,a/i/o/t`` lines with one partition name per pending job."""
    partitions: dict[str, PartitionMetrics] = {}
    for line in cpus_text.split("\n"):
        if "," not in line:
            continue
        name, states_field = line.split(",")[:2]
        states = states_field.split("/")
        if len(states) < 4:
            raise ValueError(f"malformed CPU states for {name}: {states_field!r}")
        metrics = partitions.setdefault(name, PartitionMetrics())
        metrics.allocated = _parse_float(states[0])
        metrics.idle = _parse_float(states[1])
        metrics.other = _parse_float(states[2])
        metrics.total = _parse_float(states[3])
    for name in pending_text.split("\n"):
        metrics = partitions.get(name)
        if metrics is not None:
            metrics.pending += 1
    return partitions


def partitions_get_metrics() -> dict[str, PartitionMetrics]:
    return parse_partitions_metrics(partitions_data(), partitions_pending_jobs_data())


class PartitionsCollector(Collector):
    def __init__(
        self,
        cpus_source: Callable[[], str] = partitions_data,
        pending_source: Callable[[], str] = partitions_pending_jobs_data,
    ) -> None:
        self._cpus_source = cpus_source
        self._pending_source = pending_source
        labels = ("partition",)
        self.allocated = Desc(
            "slurm_partition_cpus_allocated", "Allocated CPUs for partition", labels
        )
        self.idle = Desc("slurm_partition_cpus_idle", "Idle CPUs for partition", labels)
        self.other = Desc("slurm_partition_cpus_other", "Other CPUs for partition", labels)
        self.pending = Desc(
            "slurm_partition_jobs_pending", "Pending jobs for partition", labels
        )
        self.total = Desc("slurm_partition_cpus_total", "Total CPUs for partition", labels)

    def describe(self) -> Iterator[Desc]:
        yield from (self.allocated, self.idle, self.other, self.pending, self.total)

    def collect(self) -> Iterator[Metric]:
        partitions = parse_partitions_metrics(self._cpus_source(), self._pending_source())
        for name, metrics in partitions.items():
            for desc, value in (
                (self.allocated, metrics.allocated),
                (self.idle, metrics.idle),
                (self.other, metrics.other),
                (self.pending, metrics.pending),
                (self.total, metrics.total),
            ):
                if value > 0:
                    yield const_metric(desc, value, name)