from __future__ import annotations

import math
import random
from numbers import Real
from typing import Sequence, TypeVar

from .errors import InvalidWeight

T = TypeVar("T")


def check_weight(weight) -> float:
    if isinstance(weight, bool) or not isinstance(weight, Real):
        raise InvalidWeight(f"weight must be a number, got {weight!r}")
    weight = float(weight)
    if not math.isfinite(weight) or weight <= 0:
        raise InvalidWeight(f"weight must be a positive finite number, got {weight!r}")
    return weight


def select(items: Sequence[T], weights: Sequence[float] | None = None, rng=random) -> T:
    """Pick one item with probability weight / sum(weights).

    When ``weights`` is omitted each item's ``weight`` attribute is used.
    One uniform draw per call, compared against the running total.
    """
    if not items:
        raise InvalidWeight("cannot select from an empty list")
    if len(items) == 1:
        return items[0]

    if weights is None:
        weights = [getattr(item, "weight", 1) for item in items]
    if len(weights) != len(items):
        raise InvalidWeight(f"got {len(weights)} weights for {len(items)} items")
    weights = [check_weight(w) for w in weights]

    point = rng.random() * sum(weights)
    cumulative = 0.0
    for item, weight in zip(items, weights):
        cumulative += weight
        if point < cumulative:
            return item
    # Float rounding can leave point == total
    return items[-1]
