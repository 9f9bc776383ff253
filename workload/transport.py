from __future__ import annotations

from typing import Mapping, Protocol

import httpx

from .errors import TransportFailure
from .events import Response


class Transport(Protocol):
    async def send(
        self, method: str, url: str, headers: Mapping[str, str], body: str | None
    ) -> tuple[Response, bytes]:
        ...


class HttpxTransport:
    """Transport backed by ``httpx.AsyncClient``.

    No timeout is applied unless one is given: a hung call keeps its tick
    alive until the server gives up.
    """

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float | None = None):
        self._owns_client = client is None
        self.client = client if client is not None else httpx.AsyncClient(timeout=timeout)

    async def send(self, method, url, headers, body):
        try:
            r = await self.client.request(method, url, headers=dict(headers), content=body)
        except (httpx.HTTPError, OSError) as e:
            raise TransportFailure(f"{method} {url} failed: {e}", cause=e) from e

        response = Response(
            status_code=r.status_code,
            reason=r.reason_phrase,
            headers=dict(r.headers),
            http_version=r.http_version,
        )
        return response, r.content

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "HttpxTransport":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()
