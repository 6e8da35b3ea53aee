"""Per-node CPU and memory figures from ``sinfo``."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass

from .command import run
from .exposition import Collector, Desc, Metric, const_metric
from .nodes import remove_duplicates

_UINT64_MAX = 2**64 - 1


def _parse_uint(text: str) -> int:
    if not (text.isascii() and text.isdigit()):
        return 0
    return min(int(text), _UINT64_MAX)


@dataclass
class NodeMetrics:
    mem_alloc: int = 0
    mem_total: int = 0
    cpu_alloc: int = 0
    cpu_idle: int = 0
    cpu_other: int = 0
    cpu_total: int = 0
    node_status: str = ""


def parse_node_metrics(text: str) -> dict[str, NodeMetrics]:
    """Parse ``name allocmem memory a/i/o/t state`` lines, keyed by node name."""
    nodes: dict[str, NodeMetrics] = {}
    for line in remove_duplicates(sorted(text.split("\n"))):
        fields = line.split()
        if len(fields) < 5:
            raise ValueError(f"malformed node line: {line!r}")
        name, mem_alloc, mem_total, cpu_info, status = fields[:5]
        cpus = cpu_info.split("/")
        if len(cpus) < 4:
            raise ValueError(f"malformed CPU states for {name}: {cpu_info!r}")
        nodes[name] = NodeMetrics(
            mem_alloc=_parse_uint(mem_alloc),
            mem_total=_parse_uint(mem_total),
            cpu_alloc=_parse_uint(cpus[0]),
            cpu_idle=_parse_uint(cpus[1]),
            cpu_other=_parse_uint(cpus[2]),
            cpu_total=_parse_uint(cpus[3]),
            node_status=status,
        )
    return nodes


def node_data() -> str:
    return run(
        "sinfo", ["-h", "-N", "-O", "NodeList,AllocMem,Memory,CPUsState,StateLong"]
    )


def node_get_metrics() -> dict[str, NodeMetrics]:
    return parse_node_metrics(node_data())


class NodeCollector(Collector):
    def __init__(self, source: Callable[[], str] = node_data) -> None:
        self._source = source
        labels = ("node", "status")
        self.cpu_alloc = Desc("slurm_node_cpu_alloc", "Allocated CPUs per node", labels)
        self.cpu_idle = Desc("slurm_node_cpu_idle", "Idle CPUs per node", labels)
        self.cpu_other = Desc("slurm_node_cpu_other", "Other CPUs per node", labels)
        self.cpu_total = Desc("slurm_node_cpu_total", "Total CPUs per node", labels)
        self.mem_alloc = Desc("slurm_node_mem_alloc", "Allocated memory per node", labels)
        self.mem_total = Desc("slurm_node_mem_total", "Total memory per node", labels)

    def describe(self) -> Iterator[Desc]:
        yield from (
            self.cpu_alloc,
            self.cpu_idle,
            self.cpu_other,
            self.cpu_total,
            self.mem_alloc,
            self.mem_total,
        )

    def collect(self) -> Iterator[Metric]:
        for name, node in parse_node_metrics(self._source()).items():
            for desc, value in (
                (self.cpu_alloc, node.cpu_alloc),
                (self.cpu_idle, node.cpu_idle),
                (self.cpu_other, node.cpu_other),
                (self.cpu_total, node.cpu_total),
                (self.mem_alloc, node.mem_alloc),
                (self.mem_total, node.mem_total),
            ):
                yield const_metric(desc, float(value), name, node.node_status)