"""
Cluster node inventory as seen by the application master.

A Node mirrors one resource manager node report (host, labels, total and
available resources) plus the resources this application master has itself
requested on it and not yet been granted.

NodeInventory keeps:
- host -> Node, in insertion order
- host -> locally tried resource: the running sum of everything requested on
  the host, used to debit availability before the resource manager catches up

The inventory is not synchronized; the selection manager owns it behind its lock.
"""
import logging

from resources import ResourceDescriptor

logger = logging.getLogger(__name__)


class Node:
    def __init__(self, host, labels=None, total_resource=None, available_resource=None):
        self.host = host
        self.labels = set(labels or ())
        self.total_resource = total_resource if total_resource is not None else ResourceDescriptor()
        if available_resource is None:
            available_resource = self.total_resource.deep_copy()
        self.available_resource = available_resource
        # outstanding container requests this AM has placed on the node
        self.requested_resource = ResourceDescriptor()

    @classmethod
    def from_node_report(cls, report):
        """
        Convert a node report mapping into a Node.

        Expected keys: 'host', optional 'labels', 'capability' (total), and either
        'available' or 'used'. With 'used', available = capability - used. With
        neither, the node is reported idle.
        """
        total = ResourceDescriptor.from_capability(report["capability"])
        if report.get("available") is not None:
            available = ResourceDescriptor.from_capability(report["available"])
        elif report.get("used") is not None:
            available = total.deep_copy()
            ResourceDescriptor.subtract_from(available, ResourceDescriptor.from_capability(report["used"]))
        else:
            available = None
        return cls(report["host"], report.get("labels"), total, available)

    def update_from_reported_node(self, reported):
        """Take labels and resources from a fresh report; outstanding requests are kept."""
        self.labels = set(reported.labels)
        self.total_resource = reported.total_resource
        self.available_resource = reported.available_resource

    def add_container_request(self, resource):
        ResourceDescriptor.add_to(self.requested_resource, resource)

    def remove_container_request(self, resource):
        requested = self.requested_resource
        ResourceDescriptor.subtract_from(requested, resource)
        requested.memory_mb = max(requested.memory_mb, 0)
        requested.cpu_number = max(requested.cpu_number, 0)
        requested.gpu_number = max(requested.gpu_number, 0)
        requested.port_number = max(requested.port_number, 0)

    def sort_key(self, available_resource=None):
        """
        Most available GPUs first, then vcores, then memory; host name breaks ties.

        available_resource overrides the reported availability, e.g. with the
        locally tried resource already debited.
        """
        available = available_resource if available_resource is not None else self.available_resource
        return (-available.gpu_number, -available.cpu_number, -available.memory_mb, self.host)

    def __lt__(self, other):
        return self.sort_key() < other.sort_key()

    def __repr__(self):
        return (f"Node(host={self.host}, labels={sorted(self.labels)}, "
                f"total={self.total_resource}, available={self.available_resource}, "
                f"requested={self.requested_resource})")


class NodeInventory:
    def __init__(self):
        self.nodes = {}
        self.local_tried_resource = {}

    def __contains__(self, host):
        return host in self.nodes

    def __len__(self):
        return len(self.nodes)

    def __iter__(self):
        return iter(self.nodes.values())

    def hosts(self):
        return list(self.nodes.keys())

    def get(self, host):
        return self.nodes.get(host)

    def add_node(self, reported_node):
        existing = self.nodes.get(reported_node.host)
        if existing is None:
            self.nodes[reported_node.host] = reported_node
            logger.debug(f"addNode: {reported_node}")
        else:
            existing.update_from_reported_node(reported_node)
            logger.debug(f"addNode: {existing}")

    def remove_node(self, host):
        node = self.nodes.pop(host, None)
        if node is not None:
            logger.debug(f"removeNode: {node}")

    def add_container_request(self, resource, node_hosts):
        for host in node_hosts:
            node = self.nodes.get(host)
            if node is None:
                logger.warning(f"addContainerRequest: Node is no longer a candidate: {host}")
                continue
            node.add_container_request(resource)
            if host not in self.local_tried_resource:
                self.local_tried_resource[host] = resource.deep_copy()
            else:
                ResourceDescriptor.add_to(self.local_tried_resource[host], resource)

    def remove_container_request(self, resource, node_hosts):
        # local_tried_resource is never decremented
        for host in node_hosts:
            node = self.nodes.get(host)
            if node is None:
                logger.warning(f"removeContainerRequest: Node is no longer a candidate: {host}")
                continue
            node.remove_container_request(resource)

    def get_local_tried_resource(self, host):
        return self.local_tried_resource.get(host)

    def effective_available_resource(self, host, skip_local_tried_resource):
        """
        Available resource of host used for fit checks.

        With skip_local_tried_resource the locally tried resource is subtracted
        from a copy; the node's own report is never modified.
        """
        available = self.nodes[host].available_resource
        tried = self.local_tried_resource.get(host)
        if not skip_local_tried_resource or tried is None:
            return available
        available = available.deep_copy()
        ResourceDescriptor.subtract_from(available, tried)
        return available
