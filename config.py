"""
Launcher and cluster configuration for node selection.

LauncherConfig carries the knobs the selection engine reads on every select():
- node selection policy (PACKING, COHOST, TOPOLOGY)
- candidate search buffer factor
- label / GPU type / non-GPU-task filters
- port pinning across a task role and the base port for random allocation
- whether locally tried resources are debited before the fit check

ClusterConfiguration maps host names to per-node settings (currently the GPU type).
Both can be loaded from YAML files.
"""
import logging
from enum import Enum

import yaml

from errors import ConfigurationError

logger = logging.getLogger(__name__)


class NodeSelectionPolicy(Enum):
    PACKING = "PACKING"
    COHOST = "COHOST"
    TOPOLOGY = "TOPOLOGY"

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ConfigurationError(f"Unknown node selection policy: {value}") from None


# launcher (camelCase) key -> LauncherConfig attribute
_LAUNCHER_KEYS = {
    "amNodeSelectionPolicy": "node_selection_policy",
    "amSearchNodeBufferFactor": "search_node_buffer_factor",
    "amEnableNodeLabelFilter": "enable_node_label_filter",
    "amEnableGpuTypeFilter": "enable_gpu_type_filter",
    "amAllowNonGpuTaskOnGpuNode": "allow_non_gpu_task_on_gpu_node",
    "amAllTaskWithTheSamePorts": "all_task_with_the_same_ports",
    "amSkipLocalTriedResource": "skip_local_tried_resource",
    "amContainerBasePort": "container_base_port",
}


class LauncherConfig:
    def __init__(self, node_selection_policy=NodeSelectionPolicy.PACKING,
                 search_node_buffer_factor=2,
                 enable_node_label_filter=True,
                 enable_gpu_type_filter=True,
                 allow_non_gpu_task_on_gpu_node=True,
                 all_task_with_the_same_ports=False,
                 skip_local_tried_resource=False,
                 container_base_port=2000):
        self.node_selection_policy = NodeSelectionPolicy.parse(node_selection_policy)
        self.search_node_buffer_factor = int(search_node_buffer_factor)
        self.enable_node_label_filter = bool(enable_node_label_filter)
        self.enable_gpu_type_filter = bool(enable_gpu_type_filter)
        self.allow_non_gpu_task_on_gpu_node = bool(allow_non_gpu_task_on_gpu_node)
        self.all_task_with_the_same_ports = bool(all_task_with_the_same_ports)
        self.skip_local_tried_resource = bool(skip_local_tried_resource)
        self.container_base_port = int(container_base_port)

        if self.search_node_buffer_factor < 1:
            raise ConfigurationError(
                f"searchNodeBufferFactor must be positive, got {self.search_node_buffer_factor}")
        if self.container_base_port < 0:
            raise ConfigurationError(
                f"containerBasePort must not be negative, got {self.container_base_port}")

    @classmethod
    def from_dict(cls, data):
        """Build from a mapping with either launcher camelCase keys or attribute names."""
        kwargs = {}
        for key, value in (data or {}).items():
            name = _LAUNCHER_KEYS.get(key, key)
            if name not in _LAUNCHER_KEYS.values():
                logger.warning(f"Ignoring unknown launcher config key: {key}")
                continue
            kwargs[name] = value
        return cls(**kwargs)

    def to_dict(self):
        return {
            "amNodeSelectionPolicy": self.node_selection_policy.value,
            "amSearchNodeBufferFactor": self.search_node_buffer_factor,
            "amEnableNodeLabelFilter": self.enable_node_label_filter,
            "amEnableGpuTypeFilter": self.enable_gpu_type_filter,
            "amAllowNonGpuTaskOnGpuNode": self.allow_non_gpu_task_on_gpu_node,
            "amAllTaskWithTheSamePorts": self.all_task_with_the_same_ports,
            "amSkipLocalTriedResource": self.skip_local_tried_resource,
            "amContainerBasePort": self.container_base_port,
        }

    def __repr__(self):
        return f"LauncherConfig({self.to_dict()})"


class NodeConfiguration:
    def __init__(self, gpu_type=None):
        self.gpu_type = gpu_type

    def __repr__(self):
        return f"NodeConfiguration(gpu_type={self.gpu_type!r})"


class ClusterConfiguration:
    """
    Per-host static configuration.

    nodes is None when no cluster configuration was provided at all, which
    disables the GPU type filter; an empty dict drops every host instead.
    """

    def __init__(self, nodes=None):
        self.nodes = nodes

    @classmethod
    def from_dict(cls, data):
        if not data or data.get("nodes") is None:
            return cls(None)
        nodes = {}
        for host, node_data in data["nodes"].items():
            node_data = node_data or {}
            nodes[host] = NodeConfiguration(
                gpu_type=node_data.get("gpuType", node_data.get("gpu_type")))
        return cls(nodes)

    def get_node(self, host):
        if self.nodes is None:
            return None
        return self.nodes.get(host)


def _load_yaml(path):
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Malformed YAML in {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected a mapping at the top of {path}")
    return data


def load_launcher_config(path):
    """Load a LauncherConfig from a YAML file; an empty file yields the defaults."""
    config = LauncherConfig.from_dict(_load_yaml(path))
    logger.info(f"Loaded launcher config from {path}: {config}")
    return config


def load_cluster_configuration(path):
    """Load a ClusterConfiguration from a YAML file with a top-level 'nodes' mapping."""
    config = ClusterConfiguration.from_dict(_load_yaml(path))
    node_count = len(config.nodes) if config.nodes is not None else 0
    logger.info(f"Loaded cluster configuration from {path}: {node_count} nodes")
    return config
