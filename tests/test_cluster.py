"""
Tests for Node ordering, report conversion and the node inventory.
"""
import logging

from test_utils import create_test_node, create_test_resource, pairs_of

from cluster import Node, NodeInventory


def test_node_order_most_available_first():
    nodes = [
        create_test_node("small", cpu=2, memory=2048),
        create_test_node("gpu", cpu=2, memory=2048, gpus=1),
        create_test_node("big", cpu=8, memory=2048),
        create_test_node("bigmem", cpu=8, memory=4096),
    ]
    assert [n.host for n in sorted(nodes)] == ["gpu", "bigmem", "big", "small"]


def test_node_order_ties_broken_by_host():
    nodes = [create_test_node("b"), create_test_node("a"), create_test_node("c")]
    assert [n.host for n in sorted(nodes)] == ["a", "b", "c"]


def test_from_node_report_with_used():
    node = Node.from_node_report({
        "host": "H1",
        "labels": ["gpu"],
        "capability": {"memoryMB": 16384, "vcores": 8, "gpuNumber": 4, "gpuAttribute": 0b1111,
                       "portRanges": [[3000, 3010]]},
        "used": {"memoryMB": 4096, "vcores": 2, "gpuNumber": 1, "gpuAttribute": 0b0010,
                 "portRanges": [[3005, 3005]]},
    })
    assert node.labels == {"gpu"}
    assert node.total_resource.gpu_number == 4
    available = node.available_resource
    assert (available.memory_mb, available.cpu_number, available.gpu_number) == (12288, 6, 3)
    assert available.gpu_attribute == 0b1101
    assert pairs_of(available.port_ranges) == [(3000, 3004), (3006, 3010)]


def test_from_node_report_without_usage_is_idle():
    node = Node.from_node_report({"host": "H1", "capability": {"memoryMB": 1024, "vcores": 1}})
    assert node.available_resource == node.total_resource
    assert node.available_resource is not node.total_resource
    assert node.labels == set()


def test_add_then_remove_node_restores_inventory():
    inventory = NodeInventory()
    inventory.add_node(create_test_node("H1"))
    before = inventory.hosts()

    inventory.add_node(create_test_node("H2"))
    inventory.remove_node("H2")

    assert inventory.hosts() == before


def test_remove_missing_node_is_noop():
    inventory = NodeInventory()
    inventory.add_node(create_test_node("H1"))
    inventory.remove_node("missing")
    assert inventory.hosts() == ["H1"]


def test_add_existing_node_updates_report_keeps_requests():
    inventory = NodeInventory()
    inventory.add_node(create_test_node("H1", cpu=8, labels=["a"]))
    inventory.add_container_request(create_test_resource(cpu=2), ["H1"])

    inventory.add_node(create_test_node("H1", cpu=4, labels=["b"]))

    node = inventory.get("H1")
    assert len(inventory) == 1
    assert node.available_resource.cpu_number == 4
    assert node.labels == {"b"}
    assert node.requested_resource.cpu_number == 2


def test_container_requests_track_outstanding_and_tried():
    inventory = NodeInventory()
    inventory.add_node(create_test_node("H1"))
    inventory.add_node(create_test_node("H2"))
    request = create_test_resource(cpu=2, memory=1024)

    inventory.add_container_request(request, ["H1", "H2"])
    inventory.add_container_request(request, ["H1"])

    assert inventory.get("H1").requested_resource.cpu_number == 4
    assert inventory.get("H2").requested_resource.cpu_number == 2
    assert inventory.get_local_tried_resource("H1").cpu_number == 4
    assert inventory.get_local_tried_resource("H2").memory_mb == 1024
    assert request.cpu_number == 2, "The request itself must not be accumulated into"


def test_remove_container_request_leaves_tried_resource():
    inventory = NodeInventory()
    inventory.add_node(create_test_node("H1"))
    request = create_test_resource(cpu=2)

    inventory.add_container_request(request, ["H1"])
    inventory.remove_container_request(request, ["H1"])
    inventory.remove_container_request(request, ["H1"])

    assert inventory.get("H1").requested_resource.cpu_number == 0
    assert inventory.get_local_tried_resource("H1").cpu_number == 2


def test_container_request_on_missing_host_logs_warning(caplog):
    inventory = NodeInventory()
    inventory.add_node(create_test_node("H1"))

    with caplog.at_level(logging.WARNING):
        inventory.add_container_request(create_test_resource(), ["H1", "gone"])
        inventory.remove_container_request(create_test_resource(), ["gone"])

    assert "addContainerRequest: Node is no longer a candidate: gone" in caplog.text
    assert "removeContainerRequest: Node is no longer a candidate: gone" in caplog.text
    assert inventory.get_local_tried_resource("gone") is None


def test_effective_available_resource_debits_a_copy():
    inventory = NodeInventory()
    inventory.add_node(create_test_node("H1", cpu=8))
    inventory.add_container_request(create_test_resource(cpu=3), ["H1"])

    assert inventory.effective_available_resource("H1", False).cpu_number == 8
    assert inventory.effective_available_resource("H1", True).cpu_number == 5
    assert inventory.get("H1").available_resource.cpu_number == 8
