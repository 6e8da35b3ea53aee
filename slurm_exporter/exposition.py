"""Metric descriptions, constant metrics and the Prometheus text format."""

from __future__ import annotations

import math
import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum

_METRIC_NAME = re.compile(r"[a-zA-Z_:][a-zA-Z0-9_:]*")
_LABEL_NAME = re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*")


class ValueType(Enum):
    """Kind of a sample as written on the TYPE line."""

    COUNTER = "counter"
    GAUGE = "gauge"
    UNTYPED = "untyped"


@dataclass(frozen=True)
class Desc:
    """Name, help text and variable label names of a metric."""

    name: str
    help: str
    labels: tuple[str, ...] = field(default=())

    def __post_init__(self) -> None:
        labels = tuple(self.labels)
        object.__setattr__(self, "labels", labels)
        if not _METRIC_NAME.fullmatch(self.name):
            raise ValueError(f"invalid metric name {self.name!r}")
        for label in labels:
            if not _LABEL_NAME.fullmatch(label) or label.startswith("__"):
                raise ValueError(f"invalid label name {label!r}")
        if len(set(labels)) != len(labels):
            raise ValueError(f"duplicate label names in {self.name!r}")


@dataclass(frozen=True)
class Metric:
    """One sample of a described metric."""

    desc: Desc
    value: float
    label_values: tuple[str, ...] = ()
    value_type: ValueType = ValueType.GAUGE

    @property
    def labels(self) -> dict[str, str]:
        return dict(zip(self.desc.labels, self.label_values))


def const_metric(desc: Desc, value: float, *args: str) -> Metric:
    """Build a gauge sample; ``args`` are the label values in ``desc`` order."""
    if len(args) != len(desc.labels):
        raise ValueError(
            f"{desc.name}: expected {len(desc.labels)} label values, got {len(args)}"
        )
    return Metric(desc, float(value), tuple(str(arg) for arg in args))


def format_value(value: float) -> str:
    """Format a sample value for the text exposition format."""
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return repr(value)


def _escape_help(text: str) -> str:
    return text.replace("\\", "\\\\").replace("\n", "\\n")


def _escape_label_value(text: str) -> str:
    return text.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')


def _label_pairs(metric: Metric) -> list[tuple[str, str]]:
    return sorted(zip(metric.desc.labels, metric.label_values))


def _format_labels(metric: Metric) -> str:
    pairs = _label_pairs(metric)
    if not pairs:
        return ""
    body = ",".join(f'{name}="{_escape_label_value(value)}"' for name, value in pairs)
    return "{" + body + "}"


def render(metrics: Iterable[Metric]) -> str:
    """Render samples as text, families sorted by name, samples by labels."""
    families: dict[str, tuple[Desc, list[Metric]]] = {}
    for metric in metrics:
        families.setdefault(metric.desc.name, (metric.desc, []))[1].append(metric)

    lines: list[str] = []
    for name in sorted(families):
        desc, samples = families[name]
        lines.append(f"# HELP {name} {_escape_help(desc.help)}")
        lines.append(f"# TYPE {name} {samples[0].value_type.value}")
        for metric in sorted(samples, key=_label_pairs):
            lines.append(f"{name}{_format_labels(metric)} {format_value(metric.value)}")
    return "".join(line + "\n" for line in lines)


class Collector(ABC):
    """A source of metrics; its descriptions are the Desc attributes it holds."""

    def describe(self) -> Iterator[Desc]:
        """Yield every Desc held by this collector, in assignment order."""
        for value in vars(self).values():
            if isinstance(value, Desc):
                yield value

    @abstractmethod
    def collect(self) -> Iterable[Metric]:
        """Gather and yield the current samples."""


class Registry:
    """A set of collectors whose metric names do not clash."""

    def __init__(self) -> None:
        self._collectors: list[Collector] = []
        self._names: set[str] = set()

    def register(self, collector: Collector) -> None:
        names = [desc.name for desc in collector.describe()]
        if len(set(names)) != len(names):
            raise ValueError("collector describes the same metric twice")
        clashing = self._names.intersection(names)
        if clashing:
            raise ValueError(f"metrics already registered: {', '.join(sorted(clashing))}")
        self._collectors.append(collector)
        self._names.update(names)

    def collect(self) -> Iterator[Metric]:
        for collector in self._collectors:
            yield from collector.collect()

    def render(self) -> str:
        return render(self.collect())