class TaskRequest:
    def __init__(self, tid, arrival, resource, task_role="default", node_label=None, gpu_type=None,
                 pending=1):
        self.tid = tid
        self.arrival = arrival
        self.resource = resource  # raw ResourceDescriptor, NEVER modify
        self.task_role = task_role
        self.node_label = node_label
        self.gpu_type = gpu_type
        self.pending = pending  # tasks of the role still waiting, passed to select()
        self.attempts = 0
        self.selection = None  # last SelectionResult
        self.candidates = 0  # hosts returned by the last successful select
        self.granted_host = None
        self.granted_resource = None
        self.start = None
        self.failed = False

    def reset(self):
        self.attempts = 0
        self.selection = None
        self.candidates = 0
        self.granted_host = None
        self.granted_resource = None
        self.start = None
        self.failed = False

    def is_granted(self):
        return self.granted_host is not None

    def wait_time(self):
        """Time from arrival to grant, None while not granted."""
        if self.start is None:
            return None
        return self.start - self.arrival

    def __repr__(self):
        return f"TaskRequest({self.tid}, role={self.task_role}, resource={self.resource})"
