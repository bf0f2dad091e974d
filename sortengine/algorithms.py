import math
from enum import Enum

from .errors import InvalidConfiguration, InvalidDomain
from .events import (
    AlgorithmDescriptor, ClearHighlights, Compare, Describe, MarkPivot, MarkSorted,
    Overwrite, Swap,
)

# ============================================================
# ===================== SORTING ALGORITHMS ===================
# ============================================================
#
# Every algorithm is a generator over a WorkingArray. It yields one StepEvent
# per observable action, and a mutation is always followed by its Swap or
# Overwrite event before the generator gives control back. The driver may
# suspend between any two yields, so nothing here sleeps or waits.

def bubble_sort(arr):
    n = len(arr)
    for i in range(n - 1):
        for j in range(n - i - 1):
            yield Describe(f"Comparing elements at positions {j} and {j + 1}")
            yield Compare((j, j + 1))
            if arr.read(j) > arr.read(j + 1):
                yield Describe(f"Swapping elements at positions {j} and {j + 1}")
                arr.swap(j, j + 1); yield Swap((j, j + 1))
        yield MarkSorted(n - 1 - i)
    if n: yield MarkSorted(0)


def selection_sort(arr):
    n = len(arr)
    for i in range(n - 1):
        mi = i
        yield Describe(f"Finding minimum element from position {i}")
        for j in range(i + 1, n):
            yield Compare((mi, j))
            if arr.read(j) < arr.read(mi): mi = j
        if mi != i:
            yield Describe(f"Swapping elements at positions {i} and {mi}")
            arr.swap(i, mi); yield Swap((i, mi))
        yield MarkSorted(i)
    if n: yield MarkSorted(n - 1)


def insertion_sort(arr):
    n = len(arr)
    if n: yield MarkSorted(0)
    for i in range(1, n):
        key = arr.read(i); j = i - 1
        yield Describe(f"Inserting element {key} into sorted portion")
        while j >= 0:
            yield Compare((j, j + 1))
            if arr.read(j) <= key: break
            arr.overwrite(j + 1, arr.read(j)); yield Overwrite(j + 1, arr.read(j + 1))
            j -= 1
        if j + 1 != i:
            arr.overwrite(j + 1, key); yield Overwrite(j + 1, key)
        yield MarkSorted(i)


def merge_sort(arr):
    def _merge(lo, mid, hi):
        left  = [arr.read(k) for k in range(lo, mid + 1)]
        right = [arr.read(k) for k in range(mid + 1, hi + 1)]
        yield Describe(f"Merging subarrays [{lo}...{mid}] and [{mid + 1}...{hi}]")
        i = j = 0; k = lo
        while i < len(left) and j < len(right):
            yield Compare((lo + i, mid + 1 + j))
            # <= keeps equal keys from the left run first
            if left[i] <= right[j]: v = left[i]; i += 1
            else:                   v = right[j]; j += 1
            arr.overwrite(k, v); yield Overwrite(k, v); k += 1
        while i < len(left):
            arr.overwrite(k, left[i]); yield Overwrite(k, left[i]); i += 1; k += 1
        while j < len(right):
            arr.overwrite(k, right[j]); yield Overwrite(k, right[j]); j += 1; k += 1

    def _sort(lo, hi):
        if lo >= hi: return
        mid = (lo + hi) // 2
        yield Describe(f"Dividing array: [{lo}...{mid}] and [{mid + 1}...{hi}]")
        yield from _sort(lo, mid)
        yield from _sort(mid + 1, hi)
        yield from _merge(lo, mid, hi)

    yield from _sort(0, len(arr) - 1)
    yield from _mark_all(len(arr))


def quick_sort(arr):
    def _partition(lo, hi):
        pivot = arr.read(hi)
        yield MarkPivot(hi)
        yield Describe(f"Partitioning with pivot {pivot} at position {hi}")
        i = lo - 1
        for j in range(lo, hi):
            yield Compare((j, hi))
            if arr.read(j) < pivot:
                i += 1
                if i != j: arr.swap(i, j); yield Swap((i, j))
        p = i + 1
        # Equal values at p and hi: the pivot value is already in place
        if arr.read(p) != pivot:
            arr.swap(p, hi); yield Swap((p, hi))
        yield ClearHighlights()
        return p

    def _sort(lo, hi):
        if lo < hi:
            p = yield from _partition(lo, hi)
            yield MarkSorted(p)
            yield from _sort(lo, p - 1)
            yield from _sort(p + 1, hi)
        elif lo == hi:
            yield MarkSorted(lo)

    yield from _sort(0, len(arr) - 1)


def heap_sort(arr):
    def _sift_down(size, i):
        while True:
            largest, l, r = i, 2*i + 1, 2*i + 2
            if l < size:
                yield Compare((largest, l))
                if arr.read(l) > arr.read(largest): largest = l
            if r < size:
                yield Compare((largest, r))
                if arr.read(r) > arr.read(largest): largest = r
            if largest == i: return
            arr.swap(i, largest); yield Swap((i, largest))
            i = largest

    n = len(arr)
    if n > 1: yield Describe("Building max heap...")
    for i in range(n // 2 - 1, -1, -1): yield from _sift_down(n, i)
    for i in range(n - 1, 0, -1):
        yield Describe(f"Moving max element to position {i}")
        arr.swap(0, i); yield Swap((0, i))
        yield MarkSorted(i)
        yield from _sift_down(i, 0)
    if n: yield MarkSorted(0)


def _mark_all(n):
    for k in range(n): yield MarkSorted(k)


def _require_non_negative(values, name):
    if any(v < 0 for v in values):
        raise InvalidDomain(f"{name} only sorts non-negative integers")


def counting_sort(arr):
    values = arr.snapshot(); n = len(values)
    _require_non_negative(values, "Counting Sort")
    if n < 2:
        yield from _mark_all(n); return
    top = max(values)
    count = [0] * (top + 1)
    yield Describe("Counting occurrences of each element...")
    for v in values: count[v] += 1
    yield Describe("Calculating cumulative counts...")
    for k in range(1, top + 1): count[k] += count[k - 1]
    yield Describe("Placing elements in sorted order...")
    out = [None] * n
    # Back-to-front keeps equal values in input order
    for i in range(n - 1, -1, -1):
        v = values[i]; out[count[v] - 1] = v; count[v] -= 1
    for i, v in enumerate(out):
        arr.overwrite(i, v); yield Overwrite(i, v)
        yield MarkSorted(i)


def _counting_by_digit(arr, exp, base=10):
    values = arr.snapshot()
    n = len(values); out = [None] * n; count = [0] * base
    for v in values: count[(v // exp) % base] += 1
    for d in range(1, base): count[d] += count[d - 1]
    for i in range(n - 1, -1, -1):
        d = (values[i] // exp) % base; out[count[d] - 1] = values[i]; count[d] -= 1
    for i, v in enumerate(out):
        arr.overwrite(i, v); yield Overwrite(i, v)


def radix_sort(arr):
    values = arr.snapshot(); n = len(values)
    _require_non_negative(values, "Radix Sort")
    if n < 2:
        yield from _mark_all(n); return
    top, exp, digit = max(values), 1, 1
    while top // exp > 0:
        yield Describe(f"Sorting by digit at position {digit}")
        yield from _counting_by_digit(arr, exp)
        exp *= 10; digit += 1
    yield from _mark_all(n)


def bucket_sort(arr):
    values = arr.snapshot(); n = len(values)
    if n < 2:
        yield from _mark_all(n); return
    top = max(values)
    buckets = [[] for _ in range(n)]
    yield Describe("Distributing elements into buckets...")
    for v in values:
        # top <= 0 collapses everything into one bucket
        b = 0 if top <= 0 else min(n - 1, max(0, math.floor((v / top) * (n - 1))))
        buckets[b].append(v)
    yield Describe("Sorting individual buckets...")
    k = 0
    for bucket in buckets:
        for v in sorted(bucket):
            arr.overwrite(k, v); yield Overwrite(k, v)
            yield MarkSorted(k); k += 1


# ============================================================
# ========================= REGISTRY =========================
# ============================================================

class AlgorithmId(str, Enum):
    BUBBLE    = "bubble"
    SELECTION = "selection"
    INSERTION = "insertion"
    MERGE     = "merge"
    QUICK     = "quick"
    HEAP      = "heap"
    COUNTING  = "counting"
    RADIX     = "radix"
    BUCKET    = "bucket"


ALGORITHMS = {
    AlgorithmId.BUBBLE:    AlgorithmDescriptor("bubble",    "Bubble Sort",    "O(n²)",      "O(1)"),
    AlgorithmId.SELECTION: AlgorithmDescriptor("selection", "Selection Sort", "O(n²)",      "O(1)"),
    AlgorithmId.INSERTION: AlgorithmDescriptor("insertion", "Insertion Sort", "O(n²)",      "O(1)"),
    AlgorithmId.MERGE:     AlgorithmDescriptor("merge",     "Merge Sort",     "O(n log n)", "O(n)"),
    AlgorithmId.QUICK:     AlgorithmDescriptor("quick",     "Quick Sort",     "O(n log n)", "O(log n)"),
    AlgorithmId.HEAP:      AlgorithmDescriptor("heap",      "Heap Sort",      "O(n log n)", "O(1)"),
    AlgorithmId.COUNTING:  AlgorithmDescriptor("counting",  "Counting Sort",  "O(n + k)",   "O(k)", True),
    AlgorithmId.RADIX:     AlgorithmDescriptor("radix",     "Radix Sort",     "O(d × n)",   "O(n + k)", True),
    AlgorithmId.BUCKET:    AlgorithmDescriptor("bucket",    "Bucket Sort",    "O(n²)",      "O(n)"),
}

_GENERATORS = {
    AlgorithmId.BUBBLE:    bubble_sort,
    AlgorithmId.SELECTION: selection_sort,
    AlgorithmId.INSERTION: insertion_sort,
    AlgorithmId.MERGE:     merge_sort,
    AlgorithmId.QUICK:     quick_sort,
    AlgorithmId.HEAP:      heap_sort,
    AlgorithmId.COUNTING:  counting_sort,
    AlgorithmId.RADIX:     radix_sort,
    AlgorithmId.BUCKET:    bucket_sort,
}


def resolve(key) -> AlgorithmId:
    try:
        return AlgorithmId(key)
    except ValueError:
        raise InvalidConfiguration(f"Unknown algorithm: {key!r}") from None


def get_descriptor(key) -> AlgorithmDescriptor:
    return ALGORITHMS[resolve(key)]


def check_domain(key, values):
    """Raise InvalidDomain if the algorithm cannot sort these values."""
    desc = get_descriptor(key)
    if desc.non_negative_only:
        _require_non_negative(values, desc.display_name)


def get_generator(key, arr):
    return _GENERATORS[resolve(key)](arr)
