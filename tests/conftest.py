"""
Pytest configuration and shared fixtures for node selection tests.
"""
import pytest
from test_utils import create_test_node, create_test_manager


@pytest.fixture
def cpu_nodes():
    """Two CPU-only nodes; H2 has more free capacity than H1."""
    return [
        create_test_node("H1", cpu=4, memory=8192),
        create_test_node("H2", cpu=8, memory=16384),
    ]


@pytest.fixture
def gpu_nodes():
    """Three 4-GPU nodes with different free GPU counts and a shared port window."""
    return [
        create_test_node("G1", gpus=4, port_ranges=[(3000, 3999)]),
        create_test_node("G2", gpus=2, gpu_attribute=0b1010, total_gpus=4, port_ranges=[(3000, 3999)]),
        create_test_node("G3", gpus=1, gpu_attribute=0b0100, total_gpus=4, port_ranges=[(3000, 3999)]),
    ]


@pytest.fixture
def packing_manager(cpu_nodes):
    """Manager with the two CPU nodes, PACKING policy and a buffer factor of 1."""
    return create_test_manager(cpu_nodes, node_selection_policy="PACKING", search_node_buffer_factor=1)


@pytest.fixture
def gpu_manager(gpu_nodes):
    """Manager with the three GPU nodes and default configuration."""
    return create_test_manager(gpu_nodes)
