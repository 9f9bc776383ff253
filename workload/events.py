from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

from .errors import TransportFailure
from .models import WorkingRequest

logger = logging.getLogger(__name__)


@dataclass
class Response:
    status_code: int
    reason: str = ""
    headers: Mapping[str, str] | None = None
    http_version: str = "HTTP/1.1"


@dataclass
class Visit:
    request: WorkingRequest
    response: Response
    body: bytes


@dataclass
class ErrorEvent:
    error: TransportFailure
    request: WorkingRequest | None = None


class EventSink:
    """Receives the outcome of each dispatched tick. Both hooks default to no-ops.

    Hooks may be coroutines; they are awaited inside the tick that produced
    the event, never on the timer.
    """

    def on_visit(self, visit: Visit) -> None:
        pass

    def on_error(self, event: ErrorEvent) -> None:
        pass


class CallbackSink(EventSink):
    def __init__(
        self,
        on_visit: Callable[[Visit], Any] | None = None,
        on_error: Callable[[ErrorEvent], Any] | None = None,
    ):
        self._on_visit = on_visit
        self._on_error = on_error

    def on_visit(self, visit: Visit) -> None:
        if self._on_visit is not None:
            self._on_visit(visit)

    def on_error(self, event: ErrorEvent) -> None:
        if self._on_error is not None:
            self._on_error(event)


class QueueSink(EventSink):
    """Puts ``("visit", Visit)`` / ``("error", ErrorEvent)`` pairs on a queue."""

    def __init__(self, queue: asyncio.Queue | None = None):
        self.queue = queue if queue is not None else asyncio.Queue()

    def on_visit(self, visit: Visit) -> None:
        self.queue.put_nowait(("visit", visit))

    def on_error(self, event: ErrorEvent) -> None:
        self.queue.put_nowait(("error", event))


class FanOutSink(EventSink):
    def __init__(self, sinks: Iterable[EventSink]):
        self.sinks = list(sinks)

    async def on_visit(self, visit: Visit) -> None:
        for sink in self.sinks:
            await deliver(sink.on_visit, visit)

    async def on_error(self, event: ErrorEvent) -> None:
        for sink in self.sinks:
            await deliver(sink.on_error, event)


async def deliver(hook: Callable[[Any], Any], event: Any) -> None:
    # One broken sink must not starve the others.
    try:
        result = hook(event)
        if inspect.isawaitable(result):
            await result
    except Exception:
        logger.exception("event sink %r failed", hook)
