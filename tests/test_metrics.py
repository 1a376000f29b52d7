"""
Tests for node selection metrics.
"""
import pytest
from test_utils import create_test_node, create_test_resource

import metrics
from tasks import TaskRequest


def make_task(tid, granted_host=None, attempts=1, arrival=0.0, start=None, port_ranges=None):
    task = TaskRequest(tid, arrival, create_test_resource())
    task.attempts = attempts
    if granted_host is not None:
        task.granted_host = granted_host
        task.granted_resource = create_test_resource(ports=len(port_ranges or []), port_ranges=port_ranges)
        task.start = start if start is not None else arrival
    return task


def test_empty_inputs():
    assert metrics.grant_rate([]) == 0.0
    assert metrics.mean_attempts([]) == 0.0
    assert metrics.mean_candidates([]) == 0.0
    assert metrics.mean_wait_time([]) == 0.0
    assert metrics.gpu_fragmentation([]) == 0.0
    assert metrics.gpu_utilization([]) == 0.0
    assert metrics.port_spread([]) == 0.0


def test_grant_rate_and_attempts():
    tasks = [
        make_task(0, "H1", attempts=1),
        make_task(1, "H2", attempts=3),
        make_task(2, attempts=4),
        make_task(3, attempts=4),
    ]
    assert metrics.grant_rate(tasks) == 0.5
    assert metrics.mean_attempts(tasks) == 2.0


def test_mean_wait_time_only_counts_granted():
    tasks = [
        make_task(0, "H1", arrival=1.0, start=2.0),
        make_task(1, "H1", arrival=1.0, start=4.0),
        make_task(2, arrival=0.0),
    ]
    assert metrics.mean_wait_time(tasks) == pytest.approx(2.0)


def test_mean_candidates():
    tasks = [make_task(0, "H1"), make_task(1, "H2")]
    tasks[0].candidates = 2
    tasks[1].candidates = 4
    assert metrics.mean_candidates(tasks) == 3.0


def test_gpu_fragmentation_counts_partially_used_nodes():
    nodes = [
        create_test_node("idle", gpus=4),
        create_test_node("partial", gpus=2, gpu_attribute=0b0011, total_gpus=4),
        create_test_node("full", gpus=0, total_gpus=4),
        create_test_node("cpu"),
    ]
    assert metrics.gpu_fragmentation(nodes) == pytest.approx(2 / 6)
    assert metrics.gpu_utilization(nodes) == pytest.approx(0.5)


def test_gpu_fragmentation_without_free_gpus():
    nodes = [create_test_node("full", gpus=0, total_gpus=4)]
    assert metrics.gpu_fragmentation(nodes) == 0.0
    assert metrics.gpu_utilization(nodes) == 1.0


def test_port_spread():
    tasks = [
        make_task(0, "H1", port_ranges=[(3000, 3000)]),
        make_task(1, "H2", port_ranges=[(3010, 3010)]),
        make_task(2, "H2"),
    ]
    assert metrics.port_spread(tasks) == pytest.approx(5.0)
    assert metrics.port_spread(tasks[:1]) == 0.0
