from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections import Counter

from redis import Redis

from . import __version__
from .config import (
    APP_NAME,
    HTTP_TIMEOUT,
    LOG_FORMAT,
    LOG_LEVEL,
    REDIS_URL,
    WorkloadConfig,
    load_config,
    parse_headers,
    parse_request_line,
)
from .errors import WorkloadError
from .events import ErrorEvent, EventSink, FanOutSink, Visit
from .filters import DESCRIPTIONS, get_filter
from .metrics import MetricsSink, MetricsStore
from .scheduler import Scheduler
from .transport import HttpxTransport

logger = logging.getLogger(__name__)

EPILOG = """\
filter names:
{filters}

Each request is a comma separated list of values following this pattern:

  [WEIGHT,][METHOD,]URL[,BODY]

  WEIGHT  The numeric weight of the request (default: 1)
  METHOD  HTTP method (default: GET)
  URL     Full URL to request (required)
  BODY    The HTTP body

examples:
  {prog} http://example.com http://example.com/foo
    Two GET requests with equal weight
  {prog} 1,http://example.com 2,http://example.com/foo
    The latter is twice as likely to be requested
  {prog} --max=60 http://example.com 'POST,http://example.com,"Hello World"'
    At most one request per second, either a GET or a POST with a body
  {prog} -H "Accept: text/plain" http://example.com
    Set a custom Accept header
"""


class ConsoleSink(EventSink):
    """Prints one line per visit and keeps totals for the summary."""

    def __init__(self, silent: bool = False):
        self.silent = silent
        self.counts: Counter[str] = Counter()

    def on_visit(self, visit: Visit) -> None:
        self.counts["visits"] += 1
        if not self.silent:
            r = visit.response
            print(f"{r.status_code} {r.reason} {visit.request.method} {visit.request.url}", flush=True)

    def on_error(self, event: ErrorEvent) -> None:
        self.counts["errors"] += 1


def build_parser() -> argparse.ArgumentParser:
    filters = "\n".join(f"  {name}  {text}" for name, text in DESCRIPTIONS.items())
    p = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Generate random, weighted HTTP traffic against one or more URLs",
        epilog=EPILOG.format(filters=filters, prog=APP_NAME),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("requests", nargs="*", help="Requests to make, see below")
    p.add_argument("-v", "--version", action="version", version=__version__)
    p.add_argument("-f", "--file", help="Load config from a JSON file")
    p.add_argument("--silent", action="store_true", help="Don't output anything per request")
    p.add_argument("--max", type=float, help="Maximum number of requests per minute (default: 12)")
    p.add_argument("--filter", action="append", default=[], metavar="NAME", help="Use named standard filter (repeatable)")
    p.add_argument("-H", dest="headers", action="append", default=[], metavar="LINE", help="Add default HTTP header (repeatable)")
    p.add_argument("--duration", type=float, help="Stop after this many seconds (default: run until interrupted)")
    p.add_argument("--redis", default=REDIS_URL, help="Record counters in this Redis (default: $REDIS_URL)")
    return p


def build_config(args: argparse.Namespace) -> WorkloadConfig:
    if args.file:
        logger.info("loading config from %s", args.file)
        return load_config(args.file)

    config = WorkloadConfig(requests=[parse_request_line(line) for line in args.requests])
    if args.max is not None:
        config.max_per_minute = args.max
    if args.filter:
        config.filters = [get_filter(name) for name in args.filter]
    if args.headers:
        config.headers = parse_headers(args.headers)
    return config


async def run(config: WorkloadConfig, sink: EventSink, duration: float | None = None) -> None:
    async with HttpxTransport(timeout=HTTP_TIMEOUT) as transport:
        scheduler = Scheduler(config, transport, sink)
        if duration is not None:
            await scheduler.run_for(duration)
            return
        scheduler.start()
        try:
            await asyncio.Event().wait()
        finally:
            scheduler.stop()


def main(argv: list[str] | None = None) -> None:
    p = build_parser()
    args = p.parse_args(argv)

    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)

    if not args.file and not args.requests:
        p.error("invalid arguments: give at least one request or --file")

    try:
        config = build_config(args)
    except (OSError, ValueError) as e:
        p.error(str(e))

    console = ConsoleSink(silent=args.silent)
    sinks: list[EventSink] = [console]
    if args.redis:
        sinks.append(MetricsSink(MetricsStore(Redis.from_url(args.redis, decode_responses=True))))

    try:
        asyncio.run(run(config, FanOutSink(sinks), args.duration))
    except WorkloadError as e:
        p.error(str(e))
    except KeyboardInterrupt:
        pass

    logger.info("done: %d visit(s), %d error(s)", console.counts["visits"], console.counts["errors"])


if __name__ == "__main__":
    sys.exit(main())
