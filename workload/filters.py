"""Standard filters.

Each filter is a callable taking the working request and returning a
pipeline outcome. Clock and random source are injectable so behaviour can be
pinned down in tests.
"""
from __future__ import annotations

import random
from datetime import datetime
from typing import Callable

from braceexpand import UnbalancedBracesError, braceexpand

from . import hours
from .errors import InvalidPattern, UnknownFilter
from .models import WorkingRequest
from .pipeline import Continue, Drop, FilterStep

WEEKEND_ODDS = 0.2


class Workdays:
    """Lower the chance of a request during weekends."""

    def __init__(self, clock: Callable[[], datetime] = datetime.now, rng=random):
        self.clock = clock
        self.rng = rng

    def __call__(self, request: WorkingRequest):
        odds = WEEKEND_ODDS if hours.is_weekend(self.clock()) else 1
        if self.rng.random() <= odds:
            return Continue()
        return Drop("weekend")


class WorkingHours:
    """Lower the chance of a request during weekends and at night."""

    def __init__(
        self,
        clock: Callable[[], datetime] = datetime.now,
        rng=random,
        odds: Callable[[datetime], float] = hours.odds,
    ):
        self.clock = clock
        self.rng = rng
        self.odds = odds

    def __call__(self, request: WorkingRequest):
        if self.rng.random() <= self.odds(self.clock()):
            return Continue()
        return Drop("outside working hours")


def expand_url(pattern: str) -> list[str]:
    try:
        urls = list(braceexpand(pattern))
    except UnbalancedBracesError as e:
        raise InvalidPattern(str(e)) from e
    if not urls:
        raise InvalidPattern(f"pattern expands to nothing: {pattern!r}")
    return urls


class Expand:
    """Expand braces in the URL and pick one of the results at random."""

    def __init__(self, rng=random):
        self.rng = rng

    def __call__(self, request: WorkingRequest):
        urls = expand_url(request.url)
        request.url = urls[self.rng.randrange(len(urls))]
        return Continue()


STANDARD_FILTERS: dict[str, FilterStep] = {
    "WD": Workdays(),
    "WH": WorkingHours(),
    "EX": Expand(),
}

DESCRIPTIONS = {
    "WD": "Workdays - lowers the chances of a request being made during weekends",
    "WH": "Working Hours - lowers the chances of a request being made during weekends and at night",
    "EX": "Expand - expands braces in URLs and picks a random matching URL",
}


def get_filter(name: str) -> FilterStep:
    try:
        return STANDARD_FILTERS[name.strip().upper()]
    except KeyError:
        raise UnknownFilter(f"unknown filter {name!r} (choose from {', '.join(STANDARD_FILTERS)})") from None
