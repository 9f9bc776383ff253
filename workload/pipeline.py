from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Sequence, Union

from .models import WorkingRequest


@dataclass(frozen=True)
class Continue:
    """Keep the current request (it may have been mutated in place)."""


@dataclass(frozen=True)
class Replace:
    request: WorkingRequest


@dataclass(frozen=True)
class Drop:
    """End the tick: nothing is dispatched and no event is emitted."""

    reason: str = ""


Outcome = Union[Continue, Replace, Drop, None]
FilterStep = Callable[[WorkingRequest], Union[Outcome, Awaitable[Outcome]]]


def passthrough(request: WorkingRequest) -> Continue:
    return Continue()


class Pipeline:
    """Runs filter steps one after another over a single request.

    A step returns ``Continue()`` (or ``None``), ``Replace(request)`` or
    ``Drop()``, either directly or from a coroutine. Exceptions raised by a
    step are not caught here.
    """

    def __init__(self, steps: Sequence[FilterStep] = ()):
        self.steps = tuple(steps)

    async def run(
        self,
        request: WorkingRequest,
        on_complete: Callable[[WorkingRequest], Any] | None = None,
    ) -> WorkingRequest | None:
        current = request
        for step in self.steps:
            outcome = step(current)
            if inspect.isawaitable(outcome):
                outcome = await outcome

            if outcome is None or isinstance(outcome, Continue):
                continue
            if isinstance(outcome, Replace):
                if not isinstance(outcome.request, WorkingRequest):
                    raise TypeError(f"filter {step!r} replaced the request with {outcome.request!r}")
                current = outcome.request
                continue
            if isinstance(outcome, Drop):
                return None
            raise TypeError(f"filter {step!r} returned {outcome!r}, expected Continue, Replace or Drop")

        if on_complete is not None:
            result = on_complete(current)
            if inspect.isawaitable(result):
                await result
        return current
