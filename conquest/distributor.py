from __future__ import annotations

import numbers
from typing import List, Sequence


def distribute(total_units: int, weights: Sequence[float]) -> List[int]:
    """Deal units one at a time across recipients, capped by each weight.

    Each round hands one unit to every recipient still below its cap, in list
    order. Units left over once every cap is reached are discarded, and a
    non-positive pool allocates nothing.

    >>> distribute(4, [1, 2, 3])
    [1, 2, 1]
    """
    if isinstance(total_units, bool) or not isinstance(total_units, numbers.Integral):
        raise ValueError(f"total_units must be an integer, got {total_units!r}")
    caps = []
    for weight in weights:
        if weight <= 0:
            raise ValueError(f"weights must be positive, got {weight}")
        caps.append(int(weight))

    allocations = [0] * len(caps)
    remaining = int(total_units)
    while remaining > 0:
        granted = False
        for idx, cap in enumerate(caps):
            if remaining <= 0:
                break
            if allocations[idx] >= cap:
                continue
            allocations[idx] += 1
            remaining -= 1
            granted = True
        if not granted:
            break
    return allocations
