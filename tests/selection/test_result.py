"""
Tests for SelectionResult bookkeeping.
"""
from test_utils import pairs_of, ranges_of

from selection.result import SelectionResult


def test_overlap_ports_is_intersection_of_all_hosts():
    result = SelectionResult()
    result.add_selection("A", 0b1, ranges_of((3000, 3100)))
    result.add_selection("B", 0b10, ranges_of((3050, 3200)))
    result.add_selection("C", 0b100, ranges_of((3000, 3060), (3090, 3095)))

    assert result.get_selected_node_hosts() == ["A", "B", "C"]
    assert pairs_of(result.get_overlap_ports()) == [(3050, 3060), (3090, 3095)]
    assert result.get_gpu_attribute("B") == 0b10
    assert len(result) == 3


def test_first_selection_without_ports():
    result = SelectionResult()
    result.add_selection("A", 0, None)
    assert result.get_overlap_ports() == []


def test_readding_host_moves_it_to_the_end():
    result = SelectionResult()
    result.add_selection("A", 0b1, ranges_of((1, 10)))
    result.add_selection("B", 0b1, ranges_of((1, 10)))
    result.add_selection("A", 0b10, ranges_of((5, 10)))

    assert result.get_selected_node_hosts() == ["B", "A"]
    assert result.get_gpu_attribute("A") == 0b10
    assert pairs_of(result.get_overlap_ports()) == [(5, 10)]


def test_unknown_host_has_no_gpu_attribute():
    assert SelectionResult().get_gpu_attribute("missing") is None


def test_str_lists_hosts_with_bits():
    result = SelectionResult()
    result.add_selection("H1", 20, [])
    result.add_selection("H2", 1, [])
    assert str(result) == "SelectionResult: [Host: H1 GpuAttribute: 20(10100)] [Host: H2 GpuAttribute: 1(1)]"
