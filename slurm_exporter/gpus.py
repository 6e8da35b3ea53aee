"""GPU allocation from ``sinfo`` and ``sacct``."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field

from .command import run
from .exposition import Collector, Desc, Metric, const_metric

_GPU_TRES_PREFIX = "gres/gpu="


def _parse_float(text: str) -> float | None:
    if not text or text != text.strip() or "_" in text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


@dataclass
class GPUsMetrics:
    alloc: float = 0.0
    idle: float = 0.0
    total: float = 0.0
    utilization: float = 0.0
    user_alloc: dict[str, float] = field(default_factory=dict)


def total_gpus_data() -> str:
    return run("sinfo", ["-h", "-o", "%n %G"])


def allocated_gpus_data() -> str:
    return run(
        "sacct",
        [
            "-a",
            "-X",
            "--format=User,AllocTRES",
            "--state=RUNNING",
            "--noheader",
            "--parsable2",
        ],
    )


def parse_total_gpus(text: str) -> float:
    """Sum the GPU counts of ``node gpu:type:count`` lines."""
    total = 0.0
    for line in text.split("\n"):
        fields = line.strip().split()
        if len(fields) < 2:
            continue
        gres = fields[1]
        if not gres.startswith("gpu:"):
            continue
        parts = gres.split(":")
        if len(parts) < 3:
            continue
        count = _parse_float(parts[2])
        if count is not None:
            total += count
    return total


def parse_allocated_gpus(text: str) -> tuple[float, dict[str, float]]:
    """Sum ``gres/gpu=N`` from ``user|tres`` lines, in total and per user."""
    total = 0.0
    per_user: dict[str, float] = {}
    for raw in text.split("\n"):
        line = raw.strip('"')
        if not line:
            continue
        parts = line.split("|")
        if len(parts) < 2:
            continue
        user = parts[0].strip()
        tres = parts[1].strip()
        if not user or not tres:
            continue
        for item in tres.split(","):
            item = item.strip()
            if not item.startswith(_GPU_TRES_PREFIX):
                continue
            count = _parse_float(item[len(_GPU_TRES_PREFIX):])
            if count is None:
                continue
            per_user[user] = per_user.get(user, 0.0) + count
            total += count
    return total, per_user


def parse_gpus_metrics(total_text: str, allocated_text: str) -> GPUsMetrics:
    total = parse_total_gpus(total_text)
    allocated, per_user = parse_allocated_gpus(allocated_text)
    return GPUsMetrics(
        alloc=allocated,
        idle=total - allocated,
        total=total,
        utilization=allocated / total if total > 0 else 0.0,
        user_alloc=per_user,
    )


def gpus_get_metrics() -> GPUsMetrics:
    return parse_gpus_metrics(total_gpus_data(), allocated_gpus_data())


class GPUsCollector(Collector):
    def __init__(
        self,
        total_source: Callable[[], str] = total_gpus_data,
        allocated_source: Callable[[], str] = allocated_gpus_data,
    ) -> None:
        self._total_source = total_source
        self._allocated_source = allocated_source
        self.alloc = Desc("slurm_gpus_alloc", "Allocated GPUs")
        self.idle = Desc("slurm_gpus_idle", "Idle GPUs")
        self.total = Desc("slurm_gpus_total", "Total GPUs")
        self.utilization = Desc("slurm_gpus_utilization", "Total GPU utilization")
        self.user_alloc = Desc(
            "slurm_user_gpus_running",
            "GPUs allocated per user for running jobs",
            ("user",),
        )

    def describe(self) -> Iterator[Desc]:
        yield from (self.alloc, self.idle, self.total, self.utilization, self.user_alloc)

    def collect(self) -> Iterator[Metric]:
        metrics = parse_gpus_metrics(self._total_source(), self._allocated_source())
        yield const_metric(self.alloc, metrics.alloc)
        yield const_metric(self.idle, metrics.idle)
        yield const_metric(self.total, metrics.total)
        yield const_metric(self.utilization, metrics.utilization)
        for user, value in metrics.user_alloc.items():
            yield const_metric(self.user_alloc, value, user)