from __future__ import annotations

from datetime import datetime

# Chance of activity for each hour of a weekday (index = hour, local time).
WEEKDAY_ODDS = (
    0.05, 0.03, 0.02, 0.02, 0.02, 0.05,  # 00-05
    0.10, 0.30, 0.60, 1.00, 1.00, 1.00,  # 06-11
    0.80, 1.00, 1.00, 1.00, 1.00, 0.70,  # 12-17
    0.40, 0.25, 0.20, 0.15, 0.10, 0.08,  # 18-23
)

WEEKEND_FACTOR = 0.2


def is_weekend(now: datetime) -> bool:
    return now.weekday() >= 5


def odds(now: datetime) -> float:
    """Probability that a request should happen at ``now``."""
    p = WEEKDAY_ODDS[now.hour]
    if is_weekend(now):
        p *= WEEKEND_FACTOR
    return p
