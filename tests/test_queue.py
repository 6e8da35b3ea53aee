import pytest

from slurm_exporter.queue import QueueCollector, QueueMetrics, parse_queue_metrics

SQUEUE = (
    " 1001,PENDING,Dependency\n"
    " 1002,PENDING,Resources\n"
    " 1003,PENDING,Priority\n"
    " 1004,RUNNING,None\n"
    " 1005,RUNNING,None\n"
    " 1006,SUSPENDED,None\n"
    " 1007,CANCELLED,None\n"
    " 1008,COMPLETING,None\n"
    " 1009,COMPLETED,None\n"
    " 1010,CONFIGURING,None\n"
    " 1011,FAILED,NonZeroExitCode\n"
    " 1012,TIMEOUT,TimeLimit\n"
    " 1013,PREEMPTED,None\n"
    " 1014,NODE_FAIL,NodeDown\n"
)


def test_parse_queue_metrics_sample():
    assert parse_queue_metrics(SQUEUE) == QueueMetrics(
        pending=3,
        pending_dep=1,
        running=2,
        suspended=1,
        cancelled=1,
        completing=1,
        completed=1,
        configuring=1,
        failed=1,
        timeout=1,
        preempted=1,
        node_fail=1,
    )


def test_empty_input_gives_zeros():
    assert parse_queue_metrics("") == QueueMetrics()


@pytest.mark.parametrize(
    "line",
    [" 1,pending,None", " 1,UNKNOWN,None", "no comma here", " 1,,None"],
)
def test_unrecognised_lines_are_ignored(line):
    assert parse_queue_metrics(line + "\n") == QueueMetrics()


def test_dependency_only_counts_for_pending():
    result = parse_queue_metrics(" 1,RUNNING,Dependency\n 2,PENDING\n")
    assert result.pending_dep == 0
    assert result.pending == 1
    assert result.running == 1


def test_collector_describes_all_states_in_order():
    names = [desc.name for desc in QueueCollector(lambda: "").describe()]
    assert names == [
        "slurm_queue_pending",
        "slurm_queue_pending_dependency",
        "slurm_queue_running",
        "slurm_queue_suspended",
        "slurm_queue_cancelled",
        "slurm_queue_completing",
        "slurm_queue_completed",
        "slurm_queue_configuring",
        "slurm_queue_failed",
        "slurm_queue_timeout",
        "slurm_queue_preempted",
        "slurm_queue_node_fail",
    ]


def test_collector_emits_every_metric_even_zero():
    metrics = list(QueueCollector(lambda: " 1,RUNNING,None\n").collect())
    values = {m.desc.name: m.value for m in metrics}
    assert len(metrics) == 12
    assert values["slurm_queue_running"] == 1
    assert values["slurm_queue_pending"] == 0


def test_collector_values_match_parse():
    collector = QueueCollector(lambda: SQUEUE)
    values = {m.desc.name: m.value for m in collector.collect()}
    assert values["slurm_queue_pending"] == 3
    assert values["slurm_queue_pending_dependency"] == 1
    assert values["slurm_queue_node_fail"] == 1