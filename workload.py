"""
Synthetic cluster and request generation for node selection experiments.

Generates:
- Node reports: heterogeneous GPU/CPU nodes with random partial usage (GPU bits,
  vcores, memory, and a few busy port windows)
- A matching cluster configuration (host -> GPU type)
- Task requests: Poisson arrivals, GPU demand from a distribution, optional
  port demand, node label and GPU type constraints

Supports Common Random Numbers (CRN) via configurable seed so that policies can
be compared on identical clusters and request streams.
"""
import random

import numpy as np

from config import ClusterConfiguration, NodeConfiguration
from resources import ResourceDescriptor
from tasks import TaskRequest


def _random_gpu_bits(total_gpus, used_gpus):
    if used_gpus <= 0:
        return 0
    bits = np.random.choice(total_gpus, size=used_gpus, replace=False)
    return int(sum(1 << int(b) for b in bits))


def generate_node_reports(
    num_nodes=16,
    gpus_per_node=8,
    cpus_per_node=32,
    memory_mb_per_node=262144,
    cpu_only_fraction=0.25,  # nodes without any GPU
    busy_probability=0.5,    # probability a node is partially used
    gpu_type_distribution={"K80": 0.5, "P100": 0.3, "V100": 0.2},
    label_distribution={"default": 0.8, "highmem": 0.2},
    port_range=(2000, 40000),
    seed=42
):
    """
    Generate a list of node report mappings (see Node.from_node_report).

    Each report also carries a 'gpuType' entry, consumed by
    generate_cluster_configuration().
    """
    np.random.seed(seed)
    random.seed(seed)

    reports = []
    for i in range(num_nodes):
        has_gpu = np.random.rand() >= cpu_only_fraction
        gpus = gpus_per_node if has_gpu else 0
        gpu_type = random.choices(
            list(gpu_type_distribution.keys()),
            weights=list(gpu_type_distribution.values()),
            k=1
        )[0] if has_gpu else None
        label = random.choices(
            list(label_distribution.keys()),
            weights=list(label_distribution.values()),
            k=1
        )[0]

        capability = {
            "memoryMB": memory_mb_per_node,
            "vcores": cpus_per_node,
            "gpuNumber": gpus,
            "gpuAttribute": (1 << gpus) - 1,
            "portRanges": [list(port_range)],
        }

        used = {"memoryMB": 0, "vcores": 0, "gpuNumber": 0, "gpuAttribute": 0, "portRanges": []}
        if np.random.rand() < busy_probability:
            used_gpus = int(np.random.randint(0, gpus + 1)) if gpus else 0
            used["gpuNumber"] = used_gpus
            used["gpuAttribute"] = _random_gpu_bits(gpus, used_gpus)
            used["vcores"] = int(np.random.randint(0, cpus_per_node // 2 + 1))
            used["memoryMB"] = int(np.random.randint(0, memory_mb_per_node // 2 + 1))
            # a few busy port windows
            for _ in range(int(np.random.randint(1, 4))):
                begin = int(np.random.randint(port_range[0], port_range[1]))
                end = min(port_range[1], begin + int(np.random.randint(0, 500)))
                used["portRanges"].append([begin, end])

        reports.append({
            "host": f"node-{i:03d}",
            "labels": [label],
            "capability": capability,
            "used": used,
            "gpuType": gpu_type,
        })
    return reports


def generate_cluster_configuration(node_reports):
    """Cluster configuration listing every GPU node with its GPU type."""
    nodes = {}
    for report in node_reports:
        if report.get("gpuType") is not None:
            nodes[report["host"]] = NodeConfiguration(gpu_type=report["gpuType"])
    return ClusterConfiguration(nodes)


def generate_task_requests(
    num_requests=100,
    arrival_rate=10,          # requests per time unit
    demand_distribution=None,  # GPU demand: {gpus: probability}
    cpus_per_gpu=4,
    memory_mb_per_gpu=16384,
    port_probability=0.3,     # probability a request also needs ports
    max_ports=4,
    gpu_type_probability=0.2,  # probability a request pins a GPU type
    gpu_types=("K80", "P100", "V100"),
    node_label=None,
    num_roles=4,
    seed=42
):
    """
    Generate a stream of TaskRequest objects.

    Args:
        demand_distribution: dict mapping GPU counts to probabilities.
            Default: {0: 0.2, 1: 0.4, 2: 0.25, 4: 0.15}
    """
    np.random.seed(seed)
    random.seed(seed)

    if demand_distribution is None:
        demand_distribution = {0: 0.2, 1: 0.4, 2: 0.25, 4: 0.15}

    requests = []
    t = 0.0
    for tid in range(num_requests):
        # Interarrival time ~ Exponential(lambda = arrival_rate)
        t += np.random.exponential(1.0 / arrival_rate)

        demand_values = list(demand_distribution.keys())
        demand_probs = list(demand_distribution.values())
        gpus = int(np.random.choice(demand_values, p=demand_probs))

        ports = int(np.random.randint(1, max_ports + 1)) if np.random.rand() < port_probability else 0
        gpu_type = random.choice(gpu_types) if gpus and np.random.rand() < gpu_type_probability else None

        resource = ResourceDescriptor(
            memory_mb=memory_mb_per_gpu * max(gpus, 1),
            cpu_number=cpus_per_gpu * max(gpus, 1),
            gpu_number=gpus,
            port_number=ports,
        )
        requests.append(TaskRequest(
            tid=tid,
            arrival=t,
            resource=resource,
            task_role=f"role{tid % num_roles}",
            node_label=node_label,
            gpu_type=gpu_type,
        ))
    return requests
