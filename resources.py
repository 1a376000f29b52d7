"""
Resource descriptor shared by nodes, requests and selection results.

A descriptor carries memory (MB), vcores, a GPU count with an optional GPU
bitmask (each set bit is one physical GPU), and a port count with optional
concrete port ranges. Arithmetic is pointwise; port ranges use range algebra.
"""
from ranges import (
    add_range,
    clone_list,
    coalesce_range_list,
    fit_in_range,
    get_value_number,
    is_equal_range_list,
    subtract_range,
    to_range_list,
)

_MISSING = object()


def _pick(mapping, *keys, default=_MISSING):
    for key in keys:
        if key in mapping:
            return mapping[key]
    if default is _MISSING:
        raise KeyError(keys[0])
    return default


class ResourceDescriptor:
    def __init__(self, memory_mb=0, cpu_number=0, gpu_number=0, gpu_attribute=0,
                 port_number=0, port_ranges=None):
        self.memory_mb = memory_mb
        self.cpu_number = cpu_number
        self.gpu_number = gpu_number
        self.gpu_attribute = gpu_attribute
        self.port_number = port_number
        self.port_ranges = coalesce_range_list(to_range_list(port_ranges)) or []

    @classmethod
    def from_capability(cls, capability):
        """
        Convert a resource manager capability mapping into a descriptor.

        Both camelCase (memoryMB, vcores, gpuNumber, ...) and snake_case keys are
        accepted. memory and vcores are mandatory; a missing one raises KeyError.
        """
        port_ranges = _pick(capability, "portRanges", "port_ranges", default=None)
        return cls(
            memory_mb=int(_pick(capability, "memoryMB", "memory_mb", "memory")),
            cpu_number=int(_pick(capability, "vcores", "cpu_number", "cpuNumber")),
            gpu_number=int(_pick(capability, "gpuNumber", "gpu_number", default=0)),
            gpu_attribute=int(_pick(capability, "gpuAttribute", "gpu_attribute", default=0)),
            port_number=int(_pick(capability, "portNumber", "port_number", default=0)),
            port_ranges=port_ranges,
        )

    def deep_copy(self):
        return ResourceDescriptor(
            memory_mb=self.memory_mb,
            cpu_number=self.cpu_number,
            gpu_number=self.gpu_number,
            gpu_attribute=self.gpu_attribute,
            port_number=self.port_number,
            port_ranges=clone_list(self.port_ranges),
        )

    def set_port_ranges(self, port_ranges):
        self.port_ranges = coalesce_range_list(to_range_list(port_ranges)) or []

    @staticmethod
    def fits_in(smaller, bigger):
        """
        Component-wise containment check.

        GPU bits requested must all be present in the bigger mask, and every
        requested port must be inside the bigger port ranges.
        """
        return (smaller.memory_mb <= bigger.memory_mb
                and smaller.cpu_number <= bigger.cpu_number
                and smaller.gpu_number <= bigger.gpu_number
                and (smaller.gpu_attribute & bigger.gpu_attribute) == smaller.gpu_attribute
                and smaller.port_number <= get_value_number(bigger.port_ranges)
                and fit_in_range(smaller.port_ranges, bigger.port_ranges))

    @staticmethod
    def add_to(target, other):
        """Add other into target in place."""
        target.memory_mb += other.memory_mb
        target.cpu_number += other.cpu_number
        target.gpu_number += other.gpu_number
        target.gpu_attribute |= other.gpu_attribute
        target.port_number += other.port_number
        target.port_ranges = add_range(target.port_ranges, other.port_ranges)

    @staticmethod
    def subtract_from(target, other):
        """Subtract other from target in place."""
        target.memory_mb -= other.memory_mb
        target.cpu_number -= other.cpu_number
        target.gpu_number -= other.gpu_number
        target.gpu_attribute &= ~other.gpu_attribute
        target.port_number -= other.port_number
        target.port_ranges = subtract_range(target.port_ranges, other.port_ranges)

    def to_dict(self):
        return {
            "memoryMB": self.memory_mb,
            "vcores": self.cpu_number,
            "gpuNumber": self.gpu_number,
            "gpuAttribute": self.gpu_attribute,
            "portNumber": self.port_number,
            "portRanges": [r.to_dict() for r in self.port_ranges],
        }

    def __eq__(self, other):
        if not isinstance(other, ResourceDescriptor):
            return NotImplemented
        return (self.memory_mb == other.memory_mb
                and self.cpu_number == other.cpu_number
                and self.gpu_number == other.gpu_number
                and self.gpu_attribute == other.gpu_attribute
                and self.port_number == other.port_number
                and is_equal_range_list(self.port_ranges, other.port_ranges))

    __hash__ = None

    def __repr__(self):
        return (f"[MemoryMB: {self.memory_mb} CpuNumber: {self.cpu_number} "
                f"GpuNumber: {self.gpu_number} GpuAttribute: {bin(self.gpu_attribute)} "
                f"PortNumber: {self.port_number} PortRanges: {self.port_ranges}]")
