import logging

from selection.base import SelectionPolicy
from selection.result import SelectionResult

logger = logging.getLogger(__name__)


class CoHost(SelectionPolicy):
    """
    Prefer hosts that already run containers of this application.

    Only candidates reported by the status manager as allocated to the
    application are considered; they are then packed like Packing does. An
    empty result (no such host survived filtering) makes the manager fall back
    to packing over all candidates.
    """
    name = "COHOST"

    def select_nodes(self, manager, candidate_hosts, available_resources, request_resource, pending_task_number):
        if manager.status_manager is None:
            logger.debug("CoHost: no status manager, nothing allocated yet")
            return SelectionResult()

        allocated_hosts = set(manager.status_manager.get_application_allocated_hosts())
        nodes = [manager.get_node(host) for host in candidate_hosts if host in allocated_hosts]
        return self.fill_result(manager, nodes, available_resources, request_resource, pending_task_number)
