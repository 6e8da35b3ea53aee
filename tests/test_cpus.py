import subprocess
from unittest import mock

import pytest

from slurm_exporter.cpus import (
    CPUsCollector,
    CPUsMetrics,
    cpus_get_metrics,
    parse_cpus_metrics,
)
from slurm_exporter.exposition import Registry


def test_parse_cpus_metrics():
    metrics = parse_cpus_metrics(" 5725/877/34/6636\n")
    assert metrics == CPUsMetrics(5725.0, 877.0, 34.0, 6636.0)


def test_parse_without_slash_gives_zeros():
    assert parse_cpus_metrics("") == CPUsMetrics(0.0, 0.0, 0.0, 0.0)


def test_parse_unparsable_part_is_zero():
    assert parse_cpus_metrics("10/x/2/12") == CPUsMetrics(10.0, 0.0, 2.0, 12.0)


def test_parse_too_few_parts_raises():
    with pytest.raises(ValueError):
        parse_cpus_metrics("1/2")


@mock.patch("slurm_exporter.command.subprocess.run")
def test_cpus_get_metrics_runs_sinfo(fake_run):
    fake_run.return_value = subprocess.CompletedProcess(
        ["sinfo"], 0, stdout=b" 10/20/0/30\n"
    )
    assert cpus_get_metrics() == CPUsMetrics(10.0, 20.0, 0.0, 30.0)
    assert fake_run.call_args.args[0] == ["sinfo", "-h", "-o %C"]


def test_collector_describe():
    names = [desc.name for desc in CPUsCollector(lambda: "").describe()]
    assert names == ["slurm_cpus_alloc", "slurm_cpus_idle", "slurm_cpus_other", "slurm_cpus_total"]


def test_collector_collect():
    collector = CPUsCollector(lambda: "1/2/3/6\n")
    values = {metric.desc.name: metric.value for metric in collector.collect()}
    assert values == {
        "slurm_cpus_alloc": 1.0,
        "slurm_cpus_idle": 2.0,
        "slurm_cpus_other": 3.0,
        "slurm_cpus_total": 6.0,
    }


def test_collector_in_registry():
    registry = Registry()
    registry.register(CPUsCollector(lambda: "1/2/3/6\n"))
    text = registry.render()
    assert "slurm_cpus_total 6\n" in text
    assert "# HELP slurm_cpus_other Mix CPUs\n" in text