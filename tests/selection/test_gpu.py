"""
Tests for GPU bitmask allocation.
"""
import pytest

from selection.gpu import bit_count, select_candidate_gpu_attribute, to_string_with_bits


def test_takes_lowest_available_bits():
    available = 0b10110100
    selected = select_candidate_gpu_attribute(available, 2)
    assert selected == 0b00010100
    assert available & ~selected == 0b10100000


@pytest.mark.parametrize("available,count", [
    (0b1, 1),
    (0b1111, 4),
    (0b1010, 1),
    (0b11110000, 3),
    ((1 << 64) | 1, 2),
])
def test_selection_is_subset_with_requested_popcount(available, count):
    selected = select_candidate_gpu_attribute(available, count)
    assert bit_count(selected) == count
    assert selected & available == selected


def test_zero_request_selects_nothing():
    assert select_candidate_gpu_attribute(0b1111, 0) == 0
    assert select_candidate_gpu_attribute(0, 0) == 0


def test_selection_is_deterministic():
    results = {select_candidate_gpu_attribute(0b01101100, 3) for _ in range(10)}
    assert results == {0b00101100}


def test_over_allocation_fails_assertion():
    with pytest.raises(AssertionError):
        select_candidate_gpu_attribute(0b0101, 3)


def test_to_string_with_bits():
    assert to_string_with_bits(20) == "20(10100)"
    assert to_string_with_bits(0) == "0(0)"
