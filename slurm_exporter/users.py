"""Job counts per user from ``squeue``."""

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
class UserJobMetrics:
    pending: float = 0.0
    running: float = 0.0
    running_cpus: float = 0.0
    suspended: float = 0.0


def users_data() -> str:
    return run("squeue", ["-a", "-r", "-h", "-o %A|%u|%T|%C"])


def parse_users_metrics(text: str) -> dict[str, UserJobMetrics]:
    """Parse ``id|user|state|cpus`` lines into per-user job counts."""
    users: dict[str, UserJobMetrics] = {}
    for line in text.split("\n"):
        if "|" not in line:
            continue
        parts = line.split("|")
        if len(parts) < 4:
            raise ValueError(f"malformed job line: {line!r}")
        metrics = users.setdefault(parts[1], UserJobMetrics())
        state = parts[2].lower()
        cpus = _parse_float(parts[3])
        if state.startswith("pending"):
            metrics.pending += 1
        elif state.startswith("running"):
            metrics.running += 1
            metrics.running_cpus += cpus
        elif state.startswith("suspended"):
            metrics.suspended += 1
    return users


class UsersCollector(Collector):
    def __init__(self, source: Callable[[], str] = users_data) -> None:
        self._source = source
        labels = ("user",)
        self.pending = Desc("slurm_user_jobs_pending", "Pending jobs for user", labels)
        self.running = Desc("slurm_user_jobs_running", "Running jobs for user", labels)
        self.running_cpus = Desc("slurm_user_cpus_running", "Running cpus for user", labels)
        self.suspended = Desc(
            "slurm_user_jobs_suspended", "Suspended jobs for user", labels
        )

    def describe(self) -> Iterator[Desc]:
        yield from (self.pending, self.running, self.running_cpus, self.suspended)

    def collect(self) -> Iterator[Metric]:
        for user, metrics in parse_users_metrics(self._source()).items():
            for desc, value in (
                (self.pending, metrics.pending),
                (self.running, metrics.running),
                (self.running_cpus, metrics.running_cpus),
                (self.suspended, metrics.suspended),
            ):
                if value > 0:
                    yield const_metric(desc, value, user)