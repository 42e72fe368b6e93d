"""
Lazy k-subset enumeration.

Subsets are produced in lexicographic index order and keep the relative
order of the source sequence, so a ranked pool yields teams listed best
member first.
"""

import math
from collections.abc import Iterator, Sequence
from typing import TypeVar

T = TypeVar("T")


def combinations(
    items: Sequence[T],
    k: int = 3,
    start: int = 0,
    prefix: tuple[T, ...] = (),
) -> Iterator[tuple[T, ...]]:
    """
    Yield every size-`k` subset of `items` exactly once.

    Args:
        items: Source sequence.
        k: Number of slots still to fill.
        start: First index the next slot may take.
        prefix: Elements already chosen.

    Yields:
        Tuples of `k` elements (plus `prefix`) in source order.
    """
    if k < 0:
        raise ValueError(f"k must be non-negative, got {k}")

    if k == 0:
        yield prefix
        return

    # Leave room for the k - 1 slots after this one
    for i in range(start, len(items) - k + 1):
        yield from combinations(items, k - 1, i + 1, prefix + (items[i],))


def count_combinations(m: int, k: int = 3) -> int:
    """Number of subsets `combinations` yields for a pool of size `m`."""
    if m < 0 or k < 0:
        return 0
    return math.comb(m, k)
