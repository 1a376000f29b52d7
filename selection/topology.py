from selection.base import SelectionPolicy
from selection.result import SelectionResult


class Topology(SelectionPolicy):
    """
    Placeholder for GPU-locality-aware selection.

    Always returns an empty result, so the manager packs instead.
    """
    name = "TOPOLOGY"

    def select_nodes(self, manager, candidate_hosts, available_resources, request_resource, pending_task_number):
        # TODO: rank hosts by intra-node GPU interconnect distance of the chosen mask
        return SelectionResult()
