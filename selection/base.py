"""
Abstract base class for node selection policies.

A policy receives the hosts that survived the selection manager's filter chain
and decides which of them (and in which order) become the SelectionResult.

All policies implement one method:
    select_nodes: pick hosts and their GPU masks for a request

Subclasses implement concrete strategies (packing, co-hosting, topology).
Returning an empty result lets the manager fall back to packing.
"""
from abc import ABC, abstractmethod

from selection.result import SelectionResult


class SelectionPolicy(ABC):
    name = None

    @abstractmethod
    def select_nodes(self, manager, candidate_hosts, available_resources, request_resource, pending_task_number):
        """
        Pick nodes for a request.

        Args:
            manager: SelectionManager instance (provides nodes, config, collaborators)
            candidate_hosts: host names left after filtering, in randomized order
            available_resources: host -> effective available ResourceDescriptor,
                with the locally tried resource debited when that is enabled
            request_resource: optimized ResourceDescriptor of the request
            pending_task_number: tasks of the role still waiting for a container

        Returns:
            SelectionResult, possibly empty
        """
        pass

    def fill_result(self, manager, nodes, available_resources, request_resource, pending_task_number):
        """Sort nodes and add the first pending * buffer-factor of them to a new result."""
        request_number = pending_task_number * manager.launcher_config.search_node_buffer_factor
        ordered = sorted(nodes, key=lambda n: n.sort_key(available_resources[n.host]))
        result = SelectionResult()
        for node in ordered[:request_number]:
            available = available_resources[node.host]
            gpu_attribute = request_resource.gpu_attribute
            if gpu_attribute == 0:
                gpu_attribute = manager.select_candidate_gpu_attribute(available, request_resource.gpu_number)
            result.add_selection(node.host, gpu_attribute, available.port_ranges)
        return result
