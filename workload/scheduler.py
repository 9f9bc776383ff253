from __future__ import annotations

import asyncio
import logging
import math
import random
from typing import Sequence

from .config import WorkloadConfig
from .dispatcher import Dispatcher
from .errors import InvalidRate, InvalidTemplateSet, SchedulerStateError
from .events import EventSink
from .models import RequestTemplate
from .pipeline import Pipeline, passthrough
from .selector import check_weight, select
from .transport import Transport

logger = logging.getLogger(__name__)

IDLE = "idle"
RUNNING = "running"
STOPPED = "stopped"


def tick_interval(max_per_minute: float) -> float:
    """Seconds between ticks: 60000 ms / rate, rounded to the nearest ms."""
    try:
        rate = float(max_per_minute)
    except (TypeError, ValueError):
        raise InvalidRate(f"max requests per minute must be a number, got {max_per_minute!r}") from None
    if not math.isfinite(rate) or rate <= 0:
        raise InvalidRate(f"max requests per minute must be positive, got {max_per_minute!r}")
    return max(1, math.floor(60000 / rate + 0.5)) / 1000


def validate_templates(templates: Sequence[RequestTemplate]) -> tuple[RequestTemplate, ...]:
    if not templates:
        raise InvalidTemplateSet("at least one request is required")
    for t in templates:
        if not isinstance(t, RequestTemplate):
            raise InvalidTemplateSet(f"not a request template: {t!r}")
        if not isinstance(t.url, str) or not t.url:
            raise InvalidTemplateSet(f"request without url: {t!r}")
        check_weight(t.weight)
    return tuple(templates)


class Scheduler:
    """Selects, filters and dispatches one request per tick.

    Ticks are independent tasks: a slow filter or a slow server never delays
    the next tick, and results may arrive out of order. ``stop()`` only
    disarms the timer; ticks already running finish and still report.
    """

    def __init__(
        self,
        config: WorkloadConfig,
        transport: Transport,
        sink: EventSink | None = None,
        rng=None,
    ):
        self.config = config
        self.templates = validate_templates(config.requests)
        self.interval = tick_interval(config.max_per_minute)
        self.rng = rng if rng is not None else random.Random()
        self.pipeline = Pipeline(config.filters or [passthrough])
        self.dispatcher = Dispatcher(
            transport,
            sink if sink is not None else EventSink(),
            default_headers=config.headers,
            agent_header=config.agent_header,
            agent=config.agent,
        )
        self.state = IDLE
        self._timer: asyncio.Task | None = None
        self._inflight: set[asyncio.Task] = set()

    def start(self) -> None:
        if self.state != IDLE:
            raise SchedulerStateError(f"cannot start a {self.state} scheduler")
        loop = asyncio.get_running_loop()
        self.state = RUNNING
        self._timer = loop.create_task(self._run_timer())
        logger.info(
            "started: %d request(s), one tick every %.3fs, %d filter(s)",
            len(self.templates), self.interval, len(self.pipeline.steps),
        )

    def stop(self) -> None:
        if self.state == STOPPED:
            return
        self.state = STOPPED
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            logger.info("stopped, %d tick(s) still in flight", len(self._inflight))

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    async def drain(self) -> None:
        """Wait for every tick already started to finish."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    async def run_for(self, seconds: float) -> None:
        self.start()
        try:
            await asyncio.sleep(seconds)
        finally:
            self.stop()
        await self.drain()

    async def _run_timer(self) -> None:
        loop = asyncio.get_running_loop()
        next_at = loop.time() + self.interval
        while True:
            await asyncio.sleep(max(0.0, next_at - loop.time()))
            task = loop.create_task(self._tick())
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)
            next_at += self.interval

    async def _tick(self) -> None:
        try:
            template = select(self.templates, rng=self.rng)
            request = await self.pipeline.run(template.clone())
        except Exception:
            logger.exception("filter failed, tick skipped")
            return
        if request is None:
            logger.debug("tick dropped by filter")
            return
        try:
            await self.dispatcher.dispatch(request)
        except Exception:
            logger.exception("dispatch of %s %s failed, tick skipped", request.method, request.url)
