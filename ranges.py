"""
Integer range algebra used to represent port sets.

A Range is a closed interval [begin, end]. A range list is a plain Python list of
Range objects; its canonical form is sorted, non-overlapping and non-adjacent.

Provides:
- Coalescing (sort + merge of overlapping or adjacent ranges)
- Intersection, subtraction and union of two range lists
- Containment checks (fit_in_range) and value counting
- Random sub-range extraction for port allocation

None is accepted wherever a range list is expected and follows the sentinel
semantics documented on each function.
"""
import numpy as np


class Range:
    def __init__(self, begin, end):
        self.begin = int(begin)
        self.end = int(end)
        if self.begin > self.end:
            raise ValueError(f"Range begin {self.begin} is greater than end {self.end}")

    @classmethod
    def from_value(cls, value):
        """Build a Range from a Range, a (begin, end) pair or a {'begin', 'end'} mapping."""
        if isinstance(value, Range):
            return value.clone()
        if isinstance(value, dict):
            return cls(value["begin"], value["end"])
        begin, end = value
        return cls(begin, end)

    def clone(self):
        return Range(self.begin, self.end)

    def value_count(self):
        return self.end - self.begin + 1

    def to_dict(self):
        return {"begin": self.begin, "end": self.end}

    def __lt__(self, other):
        return (self.begin, self.end) < (other.begin, other.end)

    def __eq__(self, other):
        if not isinstance(other, Range):
            return NotImplemented
        return self.begin == other.begin and self.end == other.end

    def __hash__(self):
        return hash((self.begin, self.end))

    def __repr__(self):
        return f"[{self.begin}-{self.end}]"


def to_range_list(values):
    """Convert an iterable of pairs/mappings/Ranges into a list of Range (None stays None)."""
    if values is None:
        return None
    return [Range.from_value(v) for v in values]


def clone_list(ranges):
    return [r.clone() for r in ranges]


def sort_range_list(ranges):
    """Return a sorted copy; ordering is by begin, then end."""
    return sorted(clone_list(ranges))


def coalesce_range_list(ranges):
    """
    Merge duplicate, overlapping and adjacent ranges.

    Returns a new canonical list; the input is not modified. None and [] are
    returned as None and [].
    """
    if ranges is None:
        return None
    if not ranges:
        return []

    sorted_list = sort_range_list(ranges)
    current = sorted_list[0]
    result = [current]

    for r in sorted_list[1:]:
        if r.begin <= current.end + 1:
            current.end = max(current.end, r.end)
        else:
            current = r
            result.append(current)
    return result


def get_value_number(ranges):
    """Count the values covered by a range list (0 for None or empty)."""
    if not ranges:
        return 0
    return sum(r.value_count() for r in coalesce_range_list(ranges))


def intersect_range_list(left_range, right_range):
    """Values present in both lists. Returns None if either side is None."""
    if left_range is None or right_range is None:
        return None

    left_list = coalesce_range_list(left_range)
    right_list = coalesce_range_list(right_range)

    result = []
    i = 0
    j = 0
    while i < len(left_list) and j < len(right_list):
        left = left_list[i]
        right = right_list[j]
        if left.end < right.begin:
            i += 1
        elif right.end < left.begin:
            j += 1
        else:
            result.append(Range(max(left.begin, right.begin), min(left.end, right.end)))
            if left.end < right.end:
                i += 1
            else:
                j += 1
    return result


def subtract_range(left_range, right_range):
    """
    Remove every value of right_range from left_range.

    Returns left_range untouched when either side is None.
    """
    if left_range is None or right_range is None:
        return left_range

    result = coalesce_range_list(left_range)
    right_list = coalesce_range_list(right_range)

    i = 0
    j = 0
    while i < len(result) and j < len(right_list):
        left = result[i]
        right = right_list[j]
        if left.end < right.begin:
            i += 1
        elif right.end < left.begin:
            j += 1
        elif left.begin < right.begin:
            if left.end <= right.end:
                # cut the tail of left
                left.end = right.begin - 1
                i += 1
            else:
                # right sits inside left: split it in two
                result.insert(i + 1, Range(right.end + 1, left.end))
                left.end = right.begin - 1
                j += 1
        elif left.end <= right.end:
            # left fully covered
            del result[i]
        else:
            left.begin = right.end + 1
            j += 1
    return result


def add_range(left_range, right_range):
    """Union of two range lists. A None side yields the other side."""
    if left_range is None:
        return right_range
    if right_range is None:
        return left_range

    return coalesce_range_list(clone_list(left_range) + clone_list(right_range))


def fit_in_range(small_range, big_range):
    """
    Check that every value of small_range lies in big_range.

    None for small_range always fits; None for big_range never does (unless
    small_range is None too).
    """
    if small_range is None:
        return True
    if big_range is None:
        return False

    big_list = coalesce_range_list(big_range)
    small_list = coalesce_range_list(small_range)

    i = 0
    j = 0
    while i < len(big_list) and j < len(small_list):
        big = big_list[i]
        small = small_list[j]

        if small.begin < big.begin:
            return False

        if small.begin <= big.end:
            if small.end > big.end:
                return False
            big.begin = small.end + 1
            j += 1
        else:
            i += 1
    return j >= len(small_list)


def get_value(ranges, index):
    """Return the index-th value (0-based) across the list, or -1 if out of range."""
    if ranges is None or index < 0:
        return -1

    i = index
    for r in coalesce_range_list(ranges):
        if r.end - r.begin < i:
            i -= r.value_count()
        else:
            return r.begin + i
    return -1


def get_sub_range(available_range, request_number, base_value, rng=None):
    """
    Pick request_number values from available_range, all of them >= base_value.

    The starting point is randomized above base_value so that concurrent
    allocations spread out; the random offset is halved on every miss, so the
    final attempt starts exactly at base_value. Values are taken greedily and
    may span several ranges.

    Args:
        available_range: canonical range list to pick from
        request_number: number of values wanted
        base_value: lower bound for every picked value
        rng: numpy Generator, a fresh default_rng() when omitted

    Returns:
        A canonical range list holding exactly request_number values, or None
        when no such selection exists.
    """
    if not available_range or request_number <= 0:
        return None

    if rng is None:
        rng = np.random.default_rng()

    max_value = available_range[-1].end
    random_base = int(rng.integers(1, max_value + 1)) if max_value >= 1 else 1

    while random_base > 0:
        result = []
        need_number = request_number
        random_base = random_base // 2
        new_base_value = base_value + random_base
        for r in available_range:
            if r.end < new_base_value:
                continue
            start = max(r.begin, new_base_value)
            if r.end - start + 1 >= need_number:
                result.append(Range(start, start + need_number - 1))
                return coalesce_range_list(result)
            result.append(Range(start, r.end))
            need_number -= r.end - start + 1
    return None


def is_equal_range_list(left_range, right_range):
    """Structural equality on canonical forms; None only equals None."""
    left = coalesce_range_list(left_range)
    right = coalesce_range_list(right_range)

    if left is None or right is None:
        return left is right
    return left == right
