"""
Multi-seed comparison of node selection configurations.

Uses Common Random Numbers (CRN): every configuration sees the same synthetic
cluster and the same request stream for a given seed. Reports the mean of each
metric with a bootstrap 95% confidence interval and optionally writes the
per-seed rows to CSV.

Usage:
    python policy_comparison.py                    # 20 seeds, random base
    python policy_comparison.py --seeds 50         # Run 50 seeds
    python policy_comparison.py --base-seed 42     # Reproducible: seeds 42-61
    python policy_comparison.py --csv results.csv  # Keep per-seed results
"""
import argparse
import csv
import logging

import numpy as np

import metrics
from config import LauncherConfig
from selection.manager import SelectionManager
from simulator import Simulator
from utils import logger_init
from workload import generate_cluster_configuration, generate_node_reports, generate_task_requests

logger = logging.getLogger(__name__)

# name -> LauncherConfig keyword arguments
configurations = {
    "Packing": {"node_selection_policy": "PACKING"},
    "CoHost": {"node_selection_policy": "COHOST"},
    "Packing+LocalTried": {"node_selection_policy": "PACKING", "skip_local_tried_resource": True},
    "Packing+SamePorts": {"node_selection_policy": "PACKING", "all_task_with_the_same_ports": True},
}


class SimulationStatusManager:
    """Status manager view over a running Simulator, for the COHOST policy."""

    def __init__(self):
        self.sim = None

    def get_application_allocated_hosts(self):
        if self.sim is None:
            return []
        return [t.granted_host for t in self.sim.granted]


def parse_args():
    parser = argparse.ArgumentParser(
        description="Multi-seed node selection comparison with CRN",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('--seeds', type=int, default=20,
                        help='Number of seeds to run (default: 20)')
    parser.add_argument('--base-seed', type=int, default=None,
                        help='Base seed for reproducibility (default: random)')
    parser.add_argument('--nodes', type=int, default=32,
                        help='Number of nodes in the synthetic cluster (default: 32)')
    parser.add_argument('--requests', type=int, default=200,
                        help='Number of task requests per trial (default: 200)')
    parser.add_argument('--horizon', type=float, default=100.0,
                        help='Simulation horizon (default: 100)')
    parser.add_argument('--csv', type=str, default=None,
                        help='Write per-seed results to this CSV file')
    parser.add_argument('--log-file', type=str, default=None,
                        help='Also log to <log-file>.log')
    parser.add_argument('--debug', action='store_true', default=False,
                        help='Log every selection decision')
    return parser.parse_args()


def run_trial(name, config_kwargs, num_nodes, num_requests, horizon, seed):
    """Run one configuration on the seed's cluster and request stream."""
    reports = generate_node_reports(num_nodes=num_nodes, seed=seed)
    tasks = generate_task_requests(num_requests=num_requests, seed=seed)

    status_manager = SimulationStatusManager()
    manager = SelectionManager(
        launcher_config=LauncherConfig(**config_kwargs),
        cluster_configuration=generate_cluster_configuration(reports),
        status_manager=status_manager,
        seed=seed,
    )
    sim = Simulator(manager, reports, tasks)
    status_manager.sim = sim
    sim.run(horizon=horizon)

    nodes = [manager.get_node(host) for host in manager.get_hosts()]
    return {
        'config': name,
        'seed': seed,
        'grant_rate': metrics.grant_rate(tasks),
        'mean_attempts': metrics.mean_attempts(tasks),
        'mean_wait': metrics.mean_wait_time(tasks),
        'gpu_fragmentation': metrics.gpu_fragmentation(nodes),
        'gpu_utilization': metrics.gpu_utilization(nodes),
        'port_spread': metrics.port_spread(tasks),
    }


def bootstrap_ci(data, func=np.mean, n_bootstrap=2000, ci=0.95):
    """
    Compute bootstrap confidence interval.

    Returns: (point_estimate, lower, upper)
    """
    data = np.asarray(data)
    point_est = func(data)

    bootstrap_stats = []
    for _ in range(n_bootstrap):
        indices = np.random.choice(len(data), size=len(data), replace=True)
        bootstrap_stats.append(func(data[indices]))

    bootstrap_stats = np.array(bootstrap_stats)
    alpha = (1 - ci) / 2
    lower = np.percentile(bootstrap_stats, alpha * 100)
    upper = np.percentile(bootstrap_stats, (1 - alpha) * 100)

    return point_est, lower, upper


def main():
    args = parse_args()
    logger_init(file=args.log_file, level=logging.DEBUG if args.debug else logging.WARNING)

    base_seed = args.base_seed if args.base_seed is not None else int(np.random.randint(0, 100000))
    seeds = list(range(base_seed, base_seed + args.seeds))
    print(f"Seeds {seeds[0]}-{seeds[-1]}, {args.nodes} nodes, {args.requests} requests")

    rows = []
    for seed in seeds:
        for name, config_kwargs in configurations.items():
            rows.append(run_trial(name, config_kwargs, args.nodes, args.requests, args.horizon, seed))

    metric_names = ['grant_rate', 'mean_attempts', 'mean_wait', 'gpu_fragmentation',
                    'gpu_utilization', 'port_spread']
    print(f"\n{'Config':<22}" + "".join(f"{m:>26}" for m in metric_names))
    for name in configurations:
        line = f"{name:<22}"
        for m in metric_names:
            values = [r[m] for r in rows if r['config'] == name]
            point, lower, upper = bootstrap_ci(values)
            line += f"{point:>10.3f} [{lower:>6.3f},{upper:>6.3f}]"
        print(line)

    if args.csv:
        with open(args.csv, 'w', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=['config', 'seed'] + metric_names)
            writer.writeheader()
            writer.writerows(rows)
        print(f"\nPer-seed results written to {args.csv}")


if __name__ == '__main__':
    main()
