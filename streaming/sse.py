"""Server-Sent Events connector built on ``httpx``.

A connector turns a stream URL into an async iterator of message payloads.
The iterator raising, or simply ending, means the channel dropped.
"""

from __future__ import annotations

import logging
from typing import AsyncIterator, Callable

import httpx

logger = logging.getLogger(__name__)

Connector = Callable[[str], AsyncIterator[str]]


async def iter_sse_data(lines: AsyncIterator[str]) -> AsyncIterator[str]:
    """Group ``data:`` lines into one payload per SSE message.

    Comments (``:``) and the ``event``/``id``/``retry`` fields are ignored;
    a blank line terminates a message.
    """
    buffer: list[str] = []
    async for line in lines:
        if not line:
            if buffer:
                yield "\n".join(buffer)
                buffer = []
            continue
        if line.startswith(":"):
            continue
        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if field == "data":
            buffer.append(value)
    if buffer:
        yield "\n".join(buffer)


class SSEConnector:
    """Open one streaming GET per call and yield its message payloads.

    Parameters
    ----------
    client : httpx.AsyncClient | None
        Shared client; a private one is created per connection if omitted.
    timeout : float
        Connect timeout in seconds.  Reads never time out, since the server
        may legitimately stay quiet between turns.
    headers : dict[str, str] | None
        Extra headers sent with every connection.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
        headers: dict[str, str] | None = None,
    ) -> None:
        self._client = client
        self.timeout = httpx.Timeout(timeout, read=None)
        self.headers = {"Accept": "text/event-stream", **(headers or {})}

    async def __call__(self, url: str) -> AsyncIterator[str]:
        if self._client is not None:
            async for data in self._stream(self._client, url):
                yield data
            return

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            async for data in self._stream(client, url):
                yield data

    async def _stream(self, client: httpx.AsyncClient, url: str) -> AsyncIterator[str]:
        async with client.stream("GET", url, headers=self.headers, timeout=self.timeout) as response:
            response.raise_for_status()
            logger.debug("SSE connected: %s (HTTP %d)", url, response.status_code)
            async for data in iter_sse_data(response.aiter_lines()):
                yield data
