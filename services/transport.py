"""Response sinks: the byte channels an :class:`SSESession` writes to.

A sink is anything with ``async write(chunk: bytes) -> None`` that raises
when the peer can no longer receive.  Two are provided:

- :class:`ASGISink` writes chunks straight to an ASGI ``send`` callable.
  Uses the raw ASGI protocol (no response buffering) so every frame is
  flushed as its own ``http.response.body`` message.
- :class:`QueueSink` hands chunks to an async generator, for servers that
  pull from a generator (``sse_starlette.EventSourceResponse``).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import AsyncIterator, Protocol, runtime_checkable

from starlette.types import Send

logger = logging.getLogger(__name__)

SSE_MEDIA_TYPE = "text/event-stream"

# Headers every Datastar stream carries besides the content type
SSE_HEADERS: dict[str, str] = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable proxy buffering (nginx)
}


@runtime_checkable
class ResponseSink(Protocol):
    """Writable transport for encoded frames."""

    async def write(self, chunk: bytes) -> None:
        """Append *chunk* to the stream; raise if the peer is gone."""
        ...


class ASGISink:
    """Chunked response body over an ASGI ``send`` channel.

    Create with :meth:`prepare_stream`, which commits status and headers.
    """

    def __init__(self, send: Send) -> None:
        self._send = send
        self._failed = False
        self._finished = False

    @classmethod
    async def prepare_stream(
        cls,
        send: Send,
        status_code: int = 200,
        headers: Iterable[tuple[bytes, bytes]] | None = None,
    ) -> ASGISink:
        """Send ``http.response.start`` and return a sink for the body.

        *headers* are raw ASGI header pairs; a ``text/event-stream``
        content type is added when none is given.
        """
        raw_headers = list(headers or [])
        if not any(name.lower() == b"content-type" for name, _ in raw_headers):
            raw_headers.append((b"content-type", SSE_MEDIA_TYPE.encode("latin-1")))
        await send({
            "type": "http.response.start",
            "status": status_code,
            "headers": raw_headers,
        })
        return cls(send)

    async def write(self, chunk: bytes) -> None:
        if self._failed or self._finished:
            raise ConnectionResetError("response stream already ended")
        try:
            await self._send({
                "type": "http.response.body",
                "body": chunk,
                "more_body": True,
            })
        except Exception:
            self._failed = True
            raise

    async def close(self) -> None:
        """Finish the response body.  Idempotent; skipped after a failure."""
        if self._failed or self._finished:
            return
        self._finished = True
        await self._send({"type": "http.response.body", "body": b"", "more_body": False})


_EOF = object()


class QueueSink:
    """Sink whose chunks are consumed by iterating :meth:`stream`.

    A write hands one chunk to the consumer and returns only once
    :meth:`stream` has taken it, so the producer is never more than one
    frame ahead of the client.  When the consumer stops iterating (client
    disconnect cancels the generator) the sink is marked gone; a pending
    write and all later writes raise ``ConnectionResetError``.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._consumer_gone = False
        self._closed = False

    @property
    def consumer_gone(self) -> bool:
        return self._consumer_gone

    async def write(self, chunk: bytes) -> None:
        if self._consumer_gone:
            raise ConnectionResetError("event stream consumer has gone away")
        if self._closed:
            raise ConnectionResetError("queue sink is closed")
        self._queue.put_nowait(chunk)
        await self._queue.join()
        if self._consumer_gone:
            raise ConnectionResetError("event stream consumer has gone away")

    async def close(self) -> None:
        """Signal end of stream to the consumer.  Idempotent."""
        if self._closed:
            return
        self._closed = True
        if not self._consumer_gone:
            self._queue.put_nowait(_EOF)

    async def stream(self) -> AsyncIterator[bytes]:
        """Yield chunks in write order until :meth:`close` is called."""
        try:
            while True:
                chunk = await self._queue.get()
                self._queue.task_done()
                if chunk is _EOF:
                    return
                yield chunk  # type: ignore[misc]
        finally:
            if not self._closed:
                logger.debug("Queue sink consumer stopped before close")
            self._consumer_gone = True
            # Release a writer blocked on a chunk nobody will read
            while not self._queue.empty():
                self._queue.get_nowait()
                self._queue.task_done()
