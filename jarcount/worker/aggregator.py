"""
Sum aggregation, used both as the map-side combiner and as the reducer.

Addition is associative and commutative, so summing partial sums gives
the same total as summing every unit count directly.
"""

from collections import defaultdict
from typing import Iterable, List, Tuple


def aggregate(key: str, values: Iterable[int]) -> Tuple[str, int]:
    """Return (key, total of values)"""
    return key, sum(values)


def combine(pairs: Iterable[Tuple[str, int]]) -> List[Tuple[str, int]]:
    """
    Pre-aggregate (key, count) pairs locally

    Keys keep the order in which they were first seen.
    """
    groups = defaultdict(list)
    for key, value in pairs:
        groups[key].append(value)
    return [aggregate(key, values) for key, values in groups.items()]
