"""
Discrete-event replay of an application master's container request loop.

Implements event-driven simulation with:
- Priority event queue (ordered by time, with tie-breaking)
- Task lifecycle tracking (pending -> requested -> granted | failed)
- SelectionManager integration: select(), container request bookkeeping and
  node report refresh after each grant

Events:
- "request": run select() for the task; on success register a container request
  on the selected hosts, on NotAvailableError retry after retry_interval
- "allocate": the resource manager grants one of the requested hosts; the
  outstanding request is removed and the host's next node report reflects
  the container
"""
import heapq
import logging

from cluster import Node
from errors import NotAvailableError
from resources import ResourceDescriptor

logger = logging.getLogger(__name__)


class Simulator:
    def __init__(self, manager, node_reports, tasks, allocation_delay=1.0, retry_interval=1.0,
                 max_retries=3):
        self.manager = manager
        self.node_reports = node_reports
        self.tasks = tasks
        self.allocation_delay = allocation_delay
        self.retry_interval = retry_interval
        self.max_retries = max_retries
        self.time = 0
        self.event_queue = []  # (time, counter, type, task)
        self.event_counter = 0  # Unique counter to break ties
        self.granted = []
        self.failed = []
        self.role_ports = {}  # task role -> ports of its first granted container

    def log(self, msg):
        logger.debug(f"[t={self.time:.2f}] {msg}")

    def schedule_event(self, t, etype, task):
        heapq.heappush(self.event_queue, (t, self.event_counter, etype, task))
        self.event_counter += 1

    def run(self, horizon=100):
        for task in self.tasks:
            task.reset()
        self.time = 0
        self.event_queue = []
        self.event_counter = 0
        self.granted = []
        self.failed = []
        self.role_ports = {}

        # Reset manager state (nodes, outstanding and locally tried requests)
        self.manager.reset_inventory()
        for report in self.node_reports:
            self.manager.add_node_report(report)

        for task in self.tasks:
            self.schedule_event(task.arrival, "request", task)

        while self.event_queue and self.event_queue[0][0] < horizon:
            self.time, _, etype, task = heapq.heappop(self.event_queue)
            if etype == "request":
                self._on_request(task)
            else:
                self._on_allocate(task)

        return self.granted

    def _on_request(self, task):
        task.attempts += 1
        try:
            result = self.manager.select(task.resource, task.node_label, task.gpu_type, task.pending,
                                         self.role_ports.get(task.task_role))
        except NotAvailableError as e:
            self.log(f"Task {task.tid} NOT AVAILABLE (attempt {task.attempts}): {e.message}")
            self._retry(task)
            return

        hosts = result.get_selected_node_hosts()
        if not hosts:
            self.log(f"Task {task.tid} got no candidate, retrying")
            self._retry(task)
            return

        task.selection = result
        task.candidates = len(hosts)
        self.manager.add_container_request(result.get_optimized_resource(), hosts)
        self.schedule_event(self.time + self.allocation_delay, "allocate", task)
        self.log(f"Task {task.tid} REQUESTED on {hosts}")

    def _on_allocate(self, task):
        result = task.selection
        optimized = result.get_optimized_resource()
        hosts = result.get_selected_node_hosts()
        self.manager.remove_container_request(optimized, hosts)

        for host in hosts:
            node = self.manager.get_node(host)
            if node is None:
                continue
            granted = optimized.deep_copy()
            granted.gpu_attribute = result.get_gpu_attribute(host)
            if not ResourceDescriptor.fits_in(granted, node.available_resource):
                continue
            self._grant(task, node, granted)
            return

        self.log(f"Task {task.tid} lost all candidates before allocation, retrying")
        self._retry(task)

    def _retry(self, task):
        if task.attempts <= self.max_retries:
            self.schedule_event(self.time + self.retry_interval, "request", task)
        else:
            task.failed = True
            self.failed.append(task)

    def _grant(self, task, node, granted):
        available = node.available_resource.deep_copy()
        ResourceDescriptor.subtract_from(available, granted)
        self.manager.add_node(Node(node.host, node.labels, node.total_resource, available))

        task.granted_host = node.host
        task.granted_resource = granted
        task.start = self.time
        self.granted.append(task)
        if granted.port_ranges and task.task_role not in self.role_ports:
            self.role_ports[task.task_role] = granted.port_ranges
        self.log(f"Task {task.tid} GRANTED on {node.host} (gpu={bin(granted.gpu_attribute)}, "
                 f"ports={granted.port_ranges})")
