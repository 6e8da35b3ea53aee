"""Node counts per state from ``sinfo``."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, fields

from .command import run
from .exposition import Collector, Desc, Metric, const_metric

# Checked in this order; the first matching prefix wins.
_STATE_PREFIXES = (
    ("alloc", "alloc"),
    ("comp", "comp"),
    ("down", "down"),
    ("drain", "drain"),
    ("fail", "fail"),
    ("err", "err"),
    ("idle", "idle"),
    ("maint", "maint"),
    ("mix", "mix"),
    ("res", "resv"),
)


def _parse_float(text: str) -> float:
    if not text or text != text.strip() or "_" in text:
        return 0.0
    try:
        return float(text)
    except ValueError:
        return 0.0


@dataclass
class NodesMetrics:
    alloc: float = 0.0
    comp: float = 0.0
    down: float = 0.0
    drain: float = 0.0
    err: float = 0.0
    fail: float = 0.0
    idle: float = 0.0
    maint: float = 0.0
    mix: float = 0.0
    resv: float = 0.0


def remove_duplicates(lines: Iterable[str]) -> list[str]:
    """Drop empty strings and repeats, keeping first occurrences in order."""
    return list(dict.fromkeys(line for line in lines if line))


def parse_nodes_metrics(text: str) -> NodesMetrics:
    """Parse ``count,state`` lines as printed by ``sinfo -o %D,%T``."""
    counts = dict.fromkeys((f.name for f in fields(NodesMetrics)), 0.0)
    for line in remove_duplicates(sorted(text.split("\n"))):
        if "," not in line:
            continue
        parts = line.split(",")
        count = _parse_float(parts[0].strip())
        state = parts[1]
        for prefix, name in _STATE_PREFIXES:
            if state.startswith(prefix):
                counts[name] += count
                break
    return NodesMetrics(**counts)


def nodes_data() -> str:
    return run("sinfo", ["-h", "-o %D,%T"])


def nodes_get_metrics() -> NodesMetrics:
    return parse_nodes_metrics(nodes_data())


class NodesCollector(Collector):
    def __init__(self, source: Callable[[], str] = nodes_data) -> None:
        self._source = source
        self.alloc = Desc("slurm_nodes_alloc", "Allocated nodes")
        self.comp = Desc("slurm_nodes_comp", "Completing nodes")
        self.down = Desc("slurm_nodes_down", "Down nodes")
        self.drain = Desc("slurm_nodes_drain", "Drain nodes")
        self.err = Desc("slurm_nodes_err", "Error nodes")
        self.fail = Desc("slurm_nodes_fail", "Fail nodes")
        self.idle = Desc("slurm_nodes_idle", "Idle nodes")
        self.maint = Desc("slurm_nodes_maint", "Maint nodes")
        self.mix = Desc("slurm_nodes_mix", "Mix nodes")
        self.resv = Desc("slurm_nodes_resv", "Reserved nodes")

    def describe(self) -> Iterator[Desc]:
        for item in fields(NodesMetrics):
            yield getattr(self, item.name)

    def collect(self) -> Iterator[Metric]:
        metrics = parse_nodes_metrics(self._source())
        for item in fields(NodesMetrics):
            yield const_metric(getattr(self, item.name), getattr(metrics, item.name))