"""
Node selection engine of the application master.

Based on:
- the resource manager's node reports (the NodeInventory)
- this application master's outstanding container requests
Given:
- a task's raw resource request
Provides:
- a SelectionResult used to build the container request for the task

select() runs a fixed pipeline over a randomized copy of the inventory's hosts:
1. label filter (optional)
2. GPU type filter against the cluster configuration (optional)
3. non-GPU tasks kept off GPU nodes (optional)
4. port pinning to the ports already allocated to the task role (optional)
5. resource fit, optionally debiting locally tried resources
6. shortfall check, policy dispatch, and port allocation on the chosen hosts

Every public method takes the same lock, so calls are fully serialized.
"""
import logging
import threading

import numpy as np

from cluster import Node, NodeInventory
from config import ClusterConfiguration, LauncherConfig, NodeSelectionPolicy
from errors import NotAvailableError
from ranges import get_sub_range, get_value_number
from resources import ResourceDescriptor
from selection.cohost import CoHost
from selection.gpu import select_candidate_gpu_attribute
from selection.packing import Packing
from selection.topology import Topology

logger = logging.getLogger(__name__)


def match_node_label(request_node_label, available_node_labels):
    return request_node_label in available_node_labels


class SelectionManager:  # THREAD SAFE
    def __init__(self, launcher_config=None, cluster_configuration=None,
                 status_manager=None, request_manager=None,
                 label_matcher=match_node_label, seed=None):
        self.launcher_config = launcher_config if launcher_config is not None else LauncherConfig()
        self.cluster_configuration = (cluster_configuration if cluster_configuration is not None
                                      else ClusterConfiguration())
        self.status_manager = status_manager
        self.request_manager = request_manager
        self.label_matcher = label_matcher
        self.rng = np.random.default_rng(seed)
        self.inventory = NodeInventory()
        self.policies = {
            NodeSelectionPolicy.PACKING: Packing(),
            NodeSelectionPolicy.COHOST: CoHost(),
            NodeSelectionPolicy.TOPOLOGY: Topology(),
        }
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Inventory
    # ------------------------------------------------------------------

    def add_node(self, reported_node):
        with self._lock:
            self.inventory.add_node(reported_node)

    def add_node_report(self, node_report):
        self.add_node(Node.from_node_report(node_report))

    def remove_node(self, host):
        with self._lock:
            self.inventory.remove_node(host)

    def remove_node_report(self, node_report):
        self.remove_node(node_report["host"])

    def add_container_request(self, resource, node_hosts):
        """Register an outstanding container request on each of node_hosts."""
        with self._lock:
            self.inventory.add_container_request(resource, node_hosts)

    def add_container_request_from(self, request):
        self.add_container_request(
            ResourceDescriptor.from_capability(request["capability"]), request.get("nodes") or [])

    def remove_container_request(self, resource, node_hosts):
        with self._lock:
            self.inventory.remove_container_request(resource, node_hosts)

    def remove_container_request_from(self, request):
        self.remove_container_request(
            ResourceDescriptor.from_capability(request["capability"]), request.get("nodes") or [])

    def get_node(self, host):
        with self._lock:
            return self.inventory.get(host)

    def get_hosts(self):
        with self._lock:
            return self.inventory.hosts()

    def get_local_tried_resource(self, host):
        with self._lock:
            return self.inventory.get_local_tried_resource(host)

    def reset_inventory(self):
        """Forget every node, outstanding request and locally tried resource."""
        with self._lock:
            self.inventory = NodeInventory()

    # ------------------------------------------------------------------
    # Filters: each takes the current host list and returns the survivors
    # ------------------------------------------------------------------

    def _randomize_nodes(self):
        hosts = self.inventory.hosts()
        self.rng.shuffle(hosts)
        return hosts

    def _filter_nodes_by_label(self, filtered_nodes, request_node_label):
        if request_node_label is None:
            return filtered_nodes
        kept = []
        for host in filtered_nodes:
            labels = self.inventory.get(host).labels
            if self.label_matcher(request_node_label, labels):
                kept.append(host)
            else:
                logger.debug(f"NodeLabel does not match: Node: [{host}] Request NodeLabel: [{request_node_label}]")
        return kept

    def _filter_nodes_by_gpu_type(self, filtered_nodes, request_node_gpu_type):
        configured_nodes = self.cluster_configuration.nodes
        if request_node_gpu_type is None or configured_nodes is None:
            return filtered_nodes
        request_gpu_types = [t.strip() for t in request_node_gpu_type.split(",")]
        kept = []
        for host in filtered_nodes:
            node_config = configured_nodes.get(host)
            if node_config is None:
                logger.debug(f"Node: [{host}] is not found in clusterConfiguration: "
                             f"Request NodeGpuType: [{request_node_gpu_type}]")
            elif node_config.gpu_type not in request_gpu_types:
                logger.debug(f"NodeGpuType does not match: Node: [{host}] Request NodeGpuType: "
                             f"[{request_node_gpu_type}], Available NodeGpuType: [{node_config.gpu_type}]")
            else:
                kept.append(host)
        return kept

    def _filter_nodes_for_non_gpu_task(self, filtered_nodes, request_resource):
        if request_resource.gpu_number != 0:
            return filtered_nodes
        kept = []
        for host in filtered_nodes:
            total_resource = self.inventory.get(host).total_resource
            if total_resource.gpu_number > 0:
                logger.debug(f"skip nodes with Gpu resource for non-gpu task: Node [{host}], "
                             f"Request Resource: [{request_resource}], Total Resource: [{total_resource}]")
            else:
                kept.append(host)
        return kept

    def _filter_nodes_by_resource(self, filtered_nodes, request_resource, skip_local_tried_resource,
                                  available_resources):
        """Keep hosts the request fits in; records each kept host's effective availability."""
        kept = []
        for host in filtered_nodes:
            available_resource = self.inventory.effective_available_resource(host, skip_local_tried_resource)
            if ResourceDescriptor.fits_in(request_resource, available_resource):
                kept.append(host)
                available_resources[host] = available_resource
            else:
                logger.debug(f"Resource does not fit in: Node: [{host}] Request Resource: "
                             f"[{request_resource}], Available Resource: [{available_resource}]")
        return kept

    def _filter_nodes_by_group_selection_policy(self, filtered_nodes, request_resource, pending_task_number):
        """Hook for GPU group policies; keeps every host for now."""
        return filtered_nodes

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def _select_nodes(self, filtered_nodes, available_resources, request_resource, pending_task_number):
        policy_name = self.launcher_config.node_selection_policy
        policy = self.policies[policy_name]
        result = policy.select_nodes(self, filtered_nodes, available_resources, request_resource,
                                     pending_task_number)
        if policy_name is not NodeSelectionPolicy.PACKING and not result.get_selected_node_hosts():
            logger.debug(f"{policy.name} selected no node, falling back to PACKING")
            result = self.policies[NodeSelectionPolicy.PACKING].select_nodes(
                self, filtered_nodes, available_resources, request_resource, pending_task_number)
        return result

    def select_candidate_gpu_attribute(self, available_resource, request_gpu_number):
        """Pick GPUs out of available_resource, a node's (possibly debited) available resource."""
        with self._lock:
            return select_candidate_gpu_attribute(available_resource.gpu_attribute, request_gpu_number)

    def select_for_task_role(self, request_resource, task_role_name):
        """Select for a task role, reading its constraints from the request and status managers."""
        with self._lock:
            params = self.request_manager.get_task_platform_params(task_role_name)
            pending_task_number = self.status_manager.get_unallocated_task_count(task_role_name)
            allocated_ports = self.status_manager.get_allocated_task_ports(task_role_name)
            return self.select(request_resource, params.task_node_label, params.task_node_gpu_type,
                               pending_task_number, allocated_ports)

    def select(self, request_resource, request_node_label, request_node_gpu_type,
               pending_task_number, allocated_ports=None):
        """
        Pick candidate hosts, GPU masks and ports for pending tasks of one role.

        Raises:
            NotAvailableError: too few candidates while a GPU type or ports are
                requested, or the chosen hosts share too few free ports
        """
        with self._lock:
            logger.info(f"select: Request: Resource: [{request_resource}], NodeLabel: [{request_node_label}], "
                        f"NodeGpuType: [{request_node_gpu_type}], TaskNumber: [{pending_task_number}]")
            config = self.launcher_config

            filtered_nodes = self._randomize_nodes()
            if config.enable_node_label_filter:
                filtered_nodes = self._filter_nodes_by_label(filtered_nodes, request_node_label)
            if config.enable_gpu_type_filter:
                filtered_nodes = self._filter_nodes_by_gpu_type(filtered_nodes, request_node_gpu_type)
            if not config.allow_non_gpu_task_on_gpu_node:
                filtered_nodes = self._filter_nodes_for_non_gpu_task(filtered_nodes, request_resource)

            optimized_resource = request_resource.deep_copy()
            if config.all_task_with_the_same_ports and get_value_number(allocated_ports) > 0:
                optimized_resource.set_port_ranges(allocated_ports)

            available_resources = {}
            filtered_nodes = self._filter_nodes_by_resource(
                filtered_nodes, optimized_resource, config.skip_local_tried_resource, available_resources)
            filtered_nodes = self._filter_nodes_by_group_selection_policy(
                filtered_nodes, optimized_resource, pending_task_number)

            if len(filtered_nodes) < pending_task_number:
                if request_node_gpu_type is not None or request_resource.port_number > 0:
                    raise NotAvailableError(
                        f"Don't have enough nodes to fit in optimizedRequestResource: {optimized_resource}, "
                        f"NodeGpuType: [{request_node_gpu_type}]")

            result = self._select_nodes(filtered_nodes, available_resources, optimized_resource, pending_task_number)

            if get_value_number(optimized_resource.port_ranges) <= 0 and optimized_resource.port_number > 0:
                candidate_ports = get_sub_range(result.get_overlap_ports(), optimized_resource.port_number,
                                                config.container_base_port, rng=self.rng)
                if get_value_number(candidate_ports) < optimized_resource.port_number:
                    raise NotAvailableError("The selected candidate nodes don't have enough ports")
                optimized_resource.set_port_ranges(candidate_ports)
                logger.debug(f"Allocated port: optimizedRequestResource: [{optimized_resource}]")

            result.set_optimized_resource(optimized_resource)
            logger.info(f"select: {result}")
            return result
