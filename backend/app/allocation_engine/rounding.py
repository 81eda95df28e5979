"""
Largest-remainder rounding for percentage allocations.

Percentages are kept at one decimal place.  Values are scaled by 10,
floored, and the leftover tenths are handed out to the elements with the
largest fractional remainders until the scaled target is reached.

Known asymmetry: the correction only ever adds tenths.  If the floored
values already meet or exceed the scaled target, they are returned as-is
and the sum may exceed the target.  Callers that need an exact sum must
pass values that already sum to roughly the target.
"""

from __future__ import annotations

import math
from typing import Sequence

SCALE = 10  # one decimal place


def largest_remainder_rounding(
    values: Sequence[float],
    target_sum: float = 100,
) -> list[float]:
    """Round *values* to one decimal so they sum to *target_sum*.

    Returns a list the same length as *values*.  Ties between equal
    remainders go to the lower index.
    """
    if not values:
        return []

    scaled = [v * SCALE for v in values]
    floored = [math.floor(v) for v in scaled]
    remainders = [(v - f, i) for i, (v, f) in enumerate(zip(scaled, floored))]

    # Stable sort: descending remainder, original order on ties
    remainders.sort(key=lambda r: -r[0])

    deficit = round(target_sum * SCALE - sum(floored))

    i = 0
    while deficit > 0:
        _, idx = remainders[i % len(remainders)]
        floored[idx] += 1
        deficit -= 1
        i += 1

    return [f / SCALE for f in floored]
