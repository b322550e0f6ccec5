"""SSE session: the single writer for one streaming response.

A session wraps a sink that has already been prepared for streaming
(status and ``text/event-stream`` headers committed) and turns frames into
ordered writes.  It is terminal once closed: either explicitly via
:meth:`SSESession.close` or implicitly by the first failed write, since a
mid-stream failure on one physical connection is not recoverable.

Usage::

    sse = SSESession(sink)
    await sse.emit(elements.build_patch("<p>hi</p>", selector="#greeting"))
    result = await sse.try_emit(frame)
    if not result.ok:
        ...

Not safe for concurrent emits from several tasks; callers serialize.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from errors.exceptions import ClosedSessionError, EventStreamError, TransportWriteError
from models.frame import Frame
from services.frame_encoder import encode_frame
from services.transport import ResponseSink

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SendResult:
    """Outcome of :meth:`SSESession.try_emit`.

    ``error`` is ``None`` on success, otherwise the
    :class:`~errors.exceptions.EventStreamError` that :meth:`SSESession.emit`
    would have raised.
    """

    session: SSESession
    error: EventStreamError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> SSESession:
        """Raise the carried error, or return the session."""
        if self.error is not None:
            raise self.error
        return self.session


class SSESession:
    """Datastar event stream over one response sink."""

    __slots__ = ("_sink", "_closed", "_frames_sent")

    def __init__(self, sink: ResponseSink) -> None:
        self._sink = sink
        self._closed = False
        self._frames_sent = 0

    @property
    def sink(self) -> ResponseSink:
        return self._sink

    @property
    def closed(self) -> bool:
        return self._closed

    def is_closed(self) -> bool:
        return self._closed

    @property
    def frames_sent(self) -> int:
        """Number of frames successfully written."""
        return self._frames_sent

    def close(self) -> SSESession:
        """Mark the session closed.  Idempotent; the sink is not touched."""
        if not self._closed:
            logger.debug("SSE session closed after %d frame(s)", self._frames_sent)
        self._closed = True
        return self

    async def emit(self, frame: Frame) -> SSESession:
        """Write *frame* to the sink, raising on any failure.

        Raises:
            ClosedSessionError: The session was already closed; nothing is
                written.
            TransportWriteError: The sink failed.  The session is closed
                from here on.
        """
        if self._closed:
            raise ClosedSessionError()

        chunk = encode_frame(frame)
        try:
            await self._sink.write(chunk)
        except Exception as exc:
            self._closed = True
            logger.warning(
                "SSE write failed for %s after %d frame(s), closing session: %s",
                frame.event_type.value,
                self._frames_sent,
                exc,
            )
            raise TransportWriteError(frame.event_type.value, str(exc) or type(exc).__name__) from exc

        self._frames_sent += 1
        logger.debug("Emitted %s (%d bytes)", frame.event_type.value, len(chunk))
        return self

    async def try_emit(self, frame: Frame) -> SendResult:
        """Like :meth:`emit`, but return stream errors instead of raising."""
        try:
            await self.emit(frame)
        except EventStreamError as exc:
            return SendResult(self, exc)
        return SendResult(self)

    async def emit_all(self, frames: list[Frame] | tuple[Frame, ...]) -> SSESession:
        """Emit *frames* in order, stopping at the first failure."""
        for frame in frames:
            await self.emit(frame)
        return self
