from __future__ import annotations

import csv
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping

from . import __version__
from .errors import InvalidTemplateSet, UnknownFilter
from .filters import get_filter
from .models import RequestTemplate
from .pipeline import FilterStep

APP_NAME = os.getenv("APP_NAME", "workload")

# Requests per minute when nothing else is given
DEFAULT_MAX_PER_MINUTE = float(os.getenv("WORKLOAD_MAX", "12"))

# Identifying header, always sent and never overridden
AGENT_HEADER = os.getenv("WORKLOAD_AGENT_HEADER", "User-Agent")
AGENT = os.getenv("WORKLOAD_AGENT", f"{APP_NAME}/{__version__}")

# Empty means no timeout at all
HTTP_TIMEOUT_RAW = os.getenv("WORKLOAD_HTTP_TIMEOUT", "").strip()
HTTP_TIMEOUT = float(HTTP_TIMEOUT_RAW) if HTTP_TIMEOUT_RAW else None

LOG_LEVEL = os.getenv("WORKLOAD_LOG_LEVEL", "INFO").strip().upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Metrics are only recorded when this is set
REDIS_URL = os.getenv("REDIS_URL", "").strip()

HTTP_METHODS = frozenset(
    {"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE", "CONNECT"}
)


def parse_headers(lines: Iterable[str]) -> dict[str, str]:
    """Parse header lines: ["Accept: text/plain"] -> {"Accept": "text/plain"}."""
    headers: dict[str, str] = {}
    for line in lines or ():
        if ":" not in line:
            continue
        name, value = line.split(":", 1)
        name = name.strip()
        if not name:
            continue
        headers[name] = value.strip()
    return headers


def parse_request_line(line: str) -> RequestTemplate:
    """Parse ``[WEIGHT,][METHOD,]URL[,BODY]`` into a template.

    Fields are CSV encoded, so a body containing commas can be quoted.
    """
    parts = next(csv.reader([line], skipinitialspace=True), [])
    weight: float = 1
    method = "GET"

    if parts:
        try:
            weight = float(parts[0])
        except ValueError:
            pass
        else:
            parts.pop(0)
    if parts and parts[0].upper() in HTTP_METHODS:
        method = parts.pop(0).upper()
    if not parts or not parts[0]:
        raise InvalidTemplateSet(f"no URL in request {line!r}")

    url = parts.pop(0)
    body = parts[0] if parts else None
    return RequestTemplate(url=url, weight=weight, method=method, body=body)


def _template(raw: Any) -> RequestTemplate:
    if isinstance(raw, RequestTemplate):
        return raw
    if isinstance(raw, str):
        return parse_request_line(raw)
    if isinstance(raw, Mapping):
        if not raw.get("url"):
            raise InvalidTemplateSet(f"request without url: {raw!r}")
        return RequestTemplate(
            url=raw["url"],
            weight=1 if raw.get("weight") is None else raw["weight"],
            method=(raw.get("method") or "GET").upper(),
            body=raw.get("body"),
            headers=raw.get("headers") or {},
        )
    raise InvalidTemplateSet(f"cannot build a request from {raw!r}")


def _filter(raw: Any) -> FilterStep:
    if isinstance(raw, str):
        return get_filter(raw)
    if callable(raw):
        return raw
    raise UnknownFilter(f"not a filter: {raw!r}")


@dataclass
class WorkloadConfig:
    """Everything a Scheduler needs.

    - ``requests``: candidate templates, fixed for the scheduler's lifetime
    - ``max_per_minute``: tick rate, default ``DEFAULT_MAX_PER_MINUTE`` (12)
    - ``filters``: filter steps in order; empty means plain pass-through
    - ``headers``: default headers, overridden by request headers
    - ``agent_header`` / ``agent``: identifying header sent with every request
    """

    requests: list[RequestTemplate] = field(default_factory=list)
    max_per_minute: float = DEFAULT_MAX_PER_MINUTE
    filters: list[FilterStep] = field(default_factory=list)
    headers: dict[str, str] = field(default_factory=dict)
    agent_header: str = AGENT_HEADER
    agent: str = AGENT

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "WorkloadConfig":
        """Build a config from ``{max, filters | filter, headers, requests}``.

        ``filters`` wins when both ``filters`` and ``filter`` are present.
        """
        if data.get("filters") is not None:
            raw_filters = data["filters"]
            if isinstance(raw_filters, (str, bytes)) or callable(raw_filters):
                raw_filters = [raw_filters]
        elif data.get("filter") is not None:
            raw_filters = [data["filter"]]
        else:
            raw_filters = []

        return cls(
            requests=[_template(r) for r in data.get("requests") or []],
            max_per_minute=DEFAULT_MAX_PER_MINUTE if data.get("max") is None else data["max"],
            filters=[_filter(f) for f in raw_filters],
            headers=dict(data.get("headers") or {}),
            agent_header=data.get("agent_header") or AGENT_HEADER,
            agent=data.get("agent") or AGENT,
        )


def load_config(path: str | Path) -> WorkloadConfig:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, Mapping):
        raise InvalidTemplateSet(f"{path}: expected a JSON object at the top level")
    return WorkloadConfig.from_mapping(data)
