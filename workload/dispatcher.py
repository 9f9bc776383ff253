from __future__ import annotations

import logging
from typing import Mapping

from .errors import TransportFailure
from .events import ErrorEvent, EventSink, Visit, deliver
from .models import WorkingRequest
from .transport import Transport

logger = logging.getLogger(__name__)


def merge_headers(
    defaults: Mapping[str, str] | None,
    request_headers: Mapping[str, str] | None,
    agent_header: str,
    agent: str,
) -> dict[str, str]:
    """defaults < request headers < identifying header.

    The identifying header replaces any header with the same name, whatever
    its case.
    """
    headers = {**(defaults or {}), **(request_headers or {})}
    name = agent_header.lower()
    headers = {k: v for k, v in headers.items() if k.lower() != name}
    headers[agent_header] = agent
    return headers


class Dispatcher:
    def __init__(
        self,
        transport: Transport,
        sink: EventSink,
        default_headers: Mapping[str, str] | None,
        agent_header: str,
        agent: str,
    ):
        self.transport = transport
        self.sink = sink
        self.default_headers = dict(default_headers or {})
        self.agent_header = agent_header
        self.agent = agent

    async def dispatch(self, request: WorkingRequest) -> None:
        request.headers = merge_headers(self.default_headers, request.headers, self.agent_header, self.agent)

        try:
            response, body = await self.transport.send(request.method, request.url, request.headers, request.body)
        except TransportFailure as e:
            await self._fail(request, e)
            return
        except Exception as e:
            await self._fail(request, TransportFailure(f"{request.method} {request.url} failed: {e!r}", cause=e))
            return

        await deliver(self.sink.on_visit, Visit(request=request, response=response, body=body))

    async def _fail(self, request: WorkingRequest, error: TransportFailure) -> None:
        logger.warning("%s %s: %s", request.method, request.url, error)
        await deliver(self.sink.on_error, ErrorEvent(error=error, request=request))
