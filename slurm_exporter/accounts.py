"""Job counts per account from ``squeue``."""

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
class JobMetrics:
    pending: float = 0.0
    running: float = 0.0
    running_cpus: float = 0.0
    suspended: float = 0.0


def accounts_data() -> str:
    return run("squeue", ["-a", "-r", "-h", "-o %A|%a|%T|%C"])


def parse_accounts_metrics(text: str) -> dict[str, JobMetrics]:
    """Parse ``id|account|state|cpus`` lines into per-account job counts."""
    accounts: dict[str, JobMetrics] = {}
    for line in text.split("\n"):
        if "|" not in line:
            continue
        parts = line.split("|")
        if len(parts) < 4:
            raise ValueError(f"malformed job line: {line!r}")
        metrics = accounts.setdefault(parts[1], JobMetrics())
        state = parts[2].lower()
        cpus = _parse_float(parts[3])
        if state.startswith("pending"):
            metrics.pending += 1
        elif state.startswith("running"):
            metrics.running += 1
            metrics.running_cpus += cpus
        elif state.startswith("suspended"):
            metrics.suspended += 1
    return accounts


class AccountsCollector(Collector):
    def __init__(self, source: Callable[[], str] = accounts_data) -> None:
        self._source = source
        labels = ("account",)
        self.pending = Desc("slurm_account_jobs_pending", "Pending jobs for account", labels)
        self.running = Desc("slurm_account_jobs_running", "Running jobs for account", labels)
        self.running_cpus = Desc(
            "slurm_account_cpus_running", "Running cpus for account", labels
        )
        self.suspended = Desc(
            "slurm_account_jobs_suspended", "Suspended jobs for account", labels
        )

    def describe(self) -> Iterator[Desc]:
        yield from (self.pending, self.running, self.running_cpus, self.suspended)

    def collect(self) -> Iterator[Metric]:
        for account, metrics in parse_accounts_metrics(self._source()).items():
            for desc, value in (
                (self.pending, metrics.pending),
                (self.running, metrics.running),
                (self.running_cpus, metrics.running_cpus),
                (self.suspended, metrics.suspended),
            ):
                if value > 0:
                    yield const_metric(desc, value, account)