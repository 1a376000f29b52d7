from selection.base import SelectionPolicy


class Packing(SelectionPolicy):
    """
    Default policy: order candidates by Node ordering and take the head.

    Node ordering puts the nodes with the most available GPUs, vcores and
    memory first, so consecutive tasks of a role land on the same large nodes.
    """
    name = "PACKING"

    def select_nodes(self, manager, candidate_hosts, available_resources, request_resource, pending_task_number):
        nodes = [manager.get_node(host) for host in candidate_hosts]
        return self.fill_result(manager, nodes, available_resources, request_resource, pending_task_number)
