"""Streaming responses that hand route handlers an :class:`SSESession`.

Two flavours:

- :class:`DatastarResponse`: pure ASGI; the handler writes straight to the
  connection through an :class:`ASGISink`.  Best for short request/response
  streams (a click that patches a few fragments).
- :func:`event_source_response`: ``sse_starlette.EventSourceResponse``
  fed by a :class:`QueueSink`; adds keep-alive pings and disconnect
  detection for long-lived streams.

Usage::

    @router.get("/counter/increment")
    async def increment(signals: dict = Depends(read_signals)):
        async def stream(sse: SSESession) -> None:
            await patch_signals(sse, {"count": signals.get("count", 0) + 1})
        return DatastarResponse(stream)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import AsyncIterator

from sse_starlette.sse import EventSourceResponse
from starlette.background import BackgroundTask
from starlette.responses import Response
from starlette.types import Receive, Scope, Send

from config.settings import get_settings
from errors.exceptions import EventStreamError
from services.sse import SSESession
from services.transport import SSE_HEADERS, SSE_MEDIA_TYPE, ASGISink, QueueSink

logger = logging.getLogger(__name__)

StreamHandler = Callable[[SSESession], Awaitable[None]]


class DatastarResponse(Response):
    """Starlette response that streams Datastar events from *handler*.

    Headers are committed before the handler runs.  A stream error that
    escapes the handler (client gone, session closed) ends the response;
    any other exception propagates to the server.
    """

    media_type = SSE_MEDIA_TYPE

    def __init__(
        self,
        handler: StreamHandler,
        status_code: int = 200,
        headers: Mapping[str, str] | None = None,
        background: BackgroundTask | None = None,
    ) -> None:
        self.handler = handler
        self.status_code = status_code
        self.background = background
        self.init_headers({**SSE_HEADERS, **(headers or {})})

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        sink = await ASGISink.prepare_stream(send, self.status_code, self.raw_headers)
        sse = SSESession(sink)
        try:
            await self.handler(sse)
        except EventStreamError as exc:
            logger.info("SSE stream ended early on %s: %s", scope.get("path", ""), exc)
        finally:
            sse.close()
            await sink.close()

        if self.background is not None:
            await self.background()


def event_source_response(
    handler: StreamHandler,
    *,
    ping: int | None = None,
    status_code: int = 200,
    headers: Mapping[str, str] | None = None,
) -> EventSourceResponse:
    """Run *handler* as a task and stream its frames via ``EventSourceResponse``.

    *ping* is the keep-alive interval in seconds; defaults to
    ``Settings.sse_ping_interval``.
    """
    sink = QueueSink()
    sse = SSESession(sink)

    async def produce() -> None:
        try:
            await handler(sse)
        except EventStreamError as exc:
            logger.info("SSE stream ended early: %s", exc)
        finally:
            sse.close()
            await sink.close()

    async def chunks() -> AsyncIterator[bytes]:
        task = asyncio.create_task(produce())
        try:
            async for chunk in sink.stream():
                yield chunk
            await task
        finally:
            if not task.done():
                task.cancel()

    return EventSourceResponse(
        chunks(),
        status_code=status_code,
        headers={**SSE_HEADERS, **(headers or {})},
        ping=ping if ping is not None else get_settings().sse_ping_interval,
    )
