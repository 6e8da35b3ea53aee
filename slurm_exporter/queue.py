"""Job counts per state from ``squeue``."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, fields

from .command import run
from .exposition import Collector, Desc, Metric, const_metric

_STATES = {
    "PENDING": "pending",
    "RUNNING": "running",
    "SUSPENDED": "suspended",
    "CANCELLED": "cancelled",
    "COMPLETING": "completing",
    "COMPLETED": "completed",
    "CONFIGURING": "configuring",
    "FAILED": "failed",
    "TIMEOUT": "timeout",
    "PREEMPTED": "preempted",
    "NODE_FAIL": "node_fail",
}


@dataclass
class QueueMetrics:
    pending: float = 0.0
    pending_dep: float = 0.0
    running: float = 0.0
    suspended: float = 0.0
    cancelled: float = 0.0
    completing: float = 0.0
    completed: float = 0.0
    configuring: float = 0.0
    failed: float = 0.0
    timeout: float = 0.0
    preempted: float = 0.0
    node_fail: float = 0.0


def parse_queue_metrics(text: str) -> QueueMetrics:
    """Count ``id,state,reason`` lines as printed by ``squeue -o %A,%T,%r``."""
    metrics = QueueMetrics()
    for line in text.split("\n"):
        if "," not in line:
            continue
        parts = line.split(",")
        name = _STATES.get(parts[1])
        if name is None:
            continue
        setattr(metrics, name, getattr(metrics, name) + 1)
        if name == "pending" and len(parts) > 2 and parts[2] == "Dependency":
            metrics.pending_dep += 1
    return metrics


def queue_data() -> str:
    return run("squeue", ["-a", "-r", "-h", "-o %A,%T,%r", "--states=all"])


def queue_get_metrics() -> QueueMetrics:
    return parse_queue_metrics(queue_data())


class QueueCollector(Collector):
    def __init__(self, source: Callable[[], str] = queue_data) -> None:
        self._source = source
        self.pending = Desc("slurm_queue_pending", "Pending jobs in queue")
        self.pending_dep = Desc(
            "slurm_queue_pending_dependency", "Pending jobs because of dependency in queue"
        )
        self.running = Desc("slurm_queue_running", "Running jobs in the cluster")
        self.suspended = Desc("slurm_queue_suspended", "Suspended jobs in the cluster")
        self.cancelled = Desc("slurm_queue_cancelled", "Cancelled jobs in the cluster")
        self.completing = Desc("slurm_queue_completing", "Completing jobs in the cluster")
        self.completed = Desc("slurm_queue_completed", "Completed jobs in the cluster")
        self.configuring = Desc(
            "slurm_queue_configuring", "Configuring jobs in the cluster"
        )
        self.failed = Desc("slurm_queue_failed", "Number of failed jobs")
        self.timeout = Desc("slurm_queue_timeout", "Jobs stopped by timeout")
        self.preempted = Desc("slurm_queue_preempted", "Number of preempted jobs")
        self.node_fail = Desc(
            "slurm_queue_node_fail", "Number of jobs stopped due to node fail"
        )

    def describe(self) -> Iterator[Desc]:
        for item in fields(QueueMetrics):
            yield getattr(self, item.name)

    def collect(self) -> Iterator[Metric]:
        metrics = parse_queue_metrics(self._source())
        for item in fields(QueueMetrics):
            yield const_metric(getattr(self, item.name), getattr(metrics, item.name))