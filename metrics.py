"""
Metrics for node selection evaluation.

Implements:
1. Grant rate: share of task requests that got a container (0-1, higher is better)
2. Mean attempts: select() rounds per granted task (>= 1, lower is better)
3. GPU fragmentation: share of free GPUs stranded on partially used nodes (0-1, lower is better)
4. GPU utilization: share of GPUs in use across the cluster (0-1)
5. Port spread: standard deviation of the first allocated port (higher spreads better)
"""
import numpy as np


def grant_rate(tasks):
    if not tasks:
        return 0.0
    return sum(1 for t in tasks if t.is_granted()) / len(tasks)


def mean_attempts(tasks):
    granted = [t.attempts for t in tasks if t.is_granted()]
    if not granted:
        return 0.0
    return float(np.mean(granted))


def mean_candidates(tasks):
    """Average number of hosts returned by the successful select() of each granted task."""
    candidates = [t.candidates for t in tasks if t.is_granted()]
    if not candidates:
        return 0.0
    return float(np.mean(candidates))


def mean_wait_time(tasks):
    waits = [t.wait_time() for t in tasks if t.is_granted()]
    if not waits:
        return 0.0
    return float(np.mean(waits))


def gpu_fragmentation(nodes):
    """
    Free GPUs on nodes that are partially used, over all free GPUs.

    A node whose GPUs are all free or all used contributes no fragmentation.
    """
    free = np.array([n.available_resource.gpu_number for n in nodes if n.total_resource.gpu_number > 0])
    total = np.array([n.total_resource.gpu_number for n in nodes if n.total_resource.gpu_number > 0])
    if free.size == 0 or free.sum() == 0:
        return 0.0
    partial = (free > 0) & (free < total)
    return float(free[partial].sum() / free.sum())


def gpu_utilization(nodes):
    total = sum(n.total_resource.gpu_number for n in nodes)
    if total <= 0:
        return 0.0
    used = total - sum(n.available_resource.gpu_number for n in nodes)
    return used / total


def port_spread(tasks):
    """Standard deviation of the lowest granted port across tasks that got ports."""
    first_ports = [t.granted_resource.port_ranges[0].begin for t in tasks
                   if t.is_granted() and t.granted_resource.port_ranges]
    if len(first_ports) < 2:
        return 0.0
    return float(np.std(first_ports))
