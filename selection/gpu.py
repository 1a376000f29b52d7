"""
GPU sub-allocation on a node's available-GPU bitmask.

Each set bit of a GPU attribute identifies one physical GPU. The default
allocator takes the lowest set bits; topology-aware allocators can replace
select_candidate_gpu_attribute without touching the selection manager.
"""


def bit_count(mask):
    return bin(mask).count("1")


def to_string_with_bits(mask):
    """Render a mask as '<value>(<binary>)', e.g. 20(10100)."""
    return f"{mask}({mask:b})"


def select_candidate_gpu_attribute(available_gpu_attribute, request_gpu_number):
    """
    Pick request_gpu_number GPUs out of available_gpu_attribute.

    Returns a mask with exactly request_gpu_number bits, the lowest ones set in
    the available mask. Asking for more GPUs than are available is a caller bug
    and fails the assertion.
    """
    assert request_gpu_number <= bit_count(available_gpu_attribute), (
        f"Requested {request_gpu_number} GPUs from mask {to_string_with_bits(available_gpu_attribute)}")

    selected = 0
    available = available_gpu_attribute
    for _ in range(request_gpu_number):
        lowest = available & -available
        selected |= lowest
        available &= available - 1
    return selected
