import math

import pytest

from slurm_exporter.exposition import (
    Collector,
    Desc,
    Registry,
    ValueType,
    const_metric,
    format_value,
    render,
)


class _FixedCollector(Collector):
    def __init__(self, prefix, value):
        self.first = Desc(f"{prefix}_first", "First metric")
        self.second = Desc(f"{prefix}_second", "Second metric", ["user"])
        self._value = value

    def collect(self):
        yield const_metric(self.first, self._value)
        yield const_metric(self.second, self._value, "alice")


def test_desc_rejects_invalid_metric_name():
    with pytest.raises(ValueError):
        Desc("1bad-name", "help")


def test_desc_rejects_invalid_label_name():
    with pytest.raises(ValueError):
        Desc("slurm_ok", "help", ["bad-label"])


def test_desc_rejects_duplicate_labels():
    with pytest.raises(ValueError):
        Desc("slurm_ok", "help", ["user", "user"])


def test_const_metric_label_count_mismatch():
    desc = Desc("slurm_account_jobs_pending", "Pending jobs for account", ["account"])
    with pytest.raises(ValueError):
        const_metric(desc, 1.0)


def test_const_metric_keeps_values():
    desc = Desc("slurm_account_jobs_pending", "Pending jobs for account", ["account"])
    metric = const_metric(desc, 2, "physics")
    assert metric.value == 2.0
    assert metric.label_values == ("physics",)
    assert metric.labels == {"account": "physics"}
    assert metric.value_type is ValueType.GAUGE


def test_format_value_special_values():
    assert format_value(math.inf) == "+Inf"
    assert format_value(-math.inf) == "-Inf"
    assert format_value(math.nan) == "NaN"


def test_format_value_integer():
    assert format_value(3.0) == "3"


@pytest.mark.parametrize("value", [0.0, 1.0, 0.25, 1e-7, 123456789.5, 1e20, -42.0])
def test_format_value_round_trip(value):
    assert float(format_value(value)) == value


def test_render_single_family():
    desc = Desc("slurm_cpus_alloc", "Allocated CPUs")
    text = render([const_metric(desc, 12)])
    assert text.splitlines() == [
        "# HELP slurm_cpus_alloc Allocated CPUs",
        "# TYPE slurm_cpus_alloc gauge",
        "slurm_cpus_alloc 12",
    ]


def test_render_sorts_families_and_samples():
    b = Desc("slurm_b", "B", ["user"])
    a = Desc("slurm_a", "A")
    text = render(
        [
            const_metric(b, 1, "zed"),
            const_metric(a, 2),
            const_metric(b, 3, "amy"),
        ]
    )
    assert text.index("# HELP slurm_a") < text.index("# HELP slurm_b")
    assert text.index('user="amy"') < text.index('user="zed"')
    assert text.count("# TYPE slurm_b gauge") == 1


def test_render_escapes_label_values():
    desc = Desc("slurm_user_jobs_running", "Running", ["user"])
    text = render([const_metric(desc, 1, 'a"b\\c\nd')])
    assert 'user="a\\"b\\\\c\\nd"' in text


def test_render_empty():
    assert render([]) == ""


def test_registry_rejects_duplicate_names():
    registry = Registry()
    registry.register(_FixedCollector("slurm_dup", 1))
    with pytest.raises(ValueError):
        registry.register(_FixedCollector("slurm_dup", 2))


def test_registry_collects_from_all_collectors():
    registry = Registry()
    registry.register(_FixedCollector("slurm_one", 1))
    registry.register(_FixedCollector("slurm_two", 2))
    names = sorted(metric.desc.name for metric in registry.collect())
    assert names == ["slurm_one_first", "slurm_one_second", "slurm_two_first", "slurm_two_second"]
    assert registry.render() == render(list(registry.collect()))