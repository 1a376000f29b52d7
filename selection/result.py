"""
Outcome of one select() call: chosen hosts with their GPU masks, the ports
free on every chosen host, and the request as finally optimized (pinned or
allocated ports).
"""
from ranges import coalesce_range_list, intersect_range_list
from resources import ResourceDescriptor
from selection.gpu import to_string_with_bits


class SelectionResult:
    def __init__(self):
        self.selected_nodes = {}  # host -> gpu attribute
        self.overlap_ports = []
        self.optimized_resource = ResourceDescriptor()

    def add_selection(self, host, gpu_attribute, port_ranges):
        """
        Record host with its GPU mask.

        overlap_ports stays the intersection of the port ranges of every
        selected host: the first host seeds it, each later one narrows it.
        """
        if not self.selected_nodes:
            self.selected_nodes[host] = gpu_attribute
            self.overlap_ports = coalesce_range_list(port_ranges) or []
            return
        self.selected_nodes.pop(host, None)
        self.selected_nodes[host] = gpu_attribute
        self.overlap_ports = intersect_range_list(self.overlap_ports, port_ranges or [])

    def get_selected_node_hosts(self):
        return list(self.selected_nodes.keys())

    def get_gpu_attribute(self, host):
        return self.selected_nodes.get(host)

    def get_overlap_ports(self):
        return self.overlap_ports

    def set_optimized_resource(self, optimized_resource):
        self.optimized_resource = optimized_resource

    def get_optimized_resource(self):
        return self.optimized_resource

    def __len__(self):
        return len(self.selected_nodes)

    def __str__(self):
        output = "SelectionResult:"
        for host, gpu_attribute in self.selected_nodes.items():
            output += f" [Host: {host} GpuAttribute: {to_string_with_bits(gpu_attribute)}]"
        return output
