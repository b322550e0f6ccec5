"""Tests for services.transport and services.responses: sinks and streaming responses."""

from __future__ import annotations

import asyncio

import pytest
from sse_starlette.sse import EventSourceResponse

from errors.exceptions import TransportWriteError
from services import elements, signals
from services.frame_encoder import decode_frame
from services.responses import DatastarResponse, event_source_response
from services.sse import SSESession
from services.transport import ASGISink, QueueSink, ResponseSink


class RecordingSend:
    """ASGI ``send`` that records messages; optionally fails on body N."""

    def __init__(self, fail_on_body: int | None = None) -> None:
        self.messages: list[dict] = []
        self.fail_on_body = fail_on_body

    async def __call__(self, message: dict) -> None:
        if message["type"] == "http.response.body" and self.fail_on_body is not None:
            bodies = sum(1 for m in self.messages if m["type"] == "http.response.body")
            if bodies + 1 >= self.fail_on_body:
                raise OSError("client disconnected")
        self.messages.append(message)

    @property
    def bodies(self) -> list[bytes]:
        return [m["body"] for m in self.messages if m["type"] == "http.response.body"]

    @property
    def headers(self) -> dict[bytes, bytes]:
        return dict(self.messages[0]["headers"])


async def _receive() -> dict:
    return {"type": "http.request", "body": b"", "more_body": False}


# ── ASGISink ─────────────────────────────────────────────────


class TestASGISink:
    @pytest.mark.asyncio
    async def test_prepare_stream_commits_headers(self):
        send = RecordingSend()
        sink = await ASGISink.prepare_stream(send, 200, [(b"x-custom", b"1")])
        assert isinstance(sink, ResponseSink)
        assert send.messages[0]["type"] == "http.response.start"
        assert send.messages[0]["status"] == 200
        assert send.headers[b"content-type"] == b"text/event-stream"
        assert send.headers[b"x-custom"] == b"1"

    @pytest.mark.asyncio
    async def test_each_write_is_its_own_chunk(self):
        send = RecordingSend()
        sink = await ASGISink.prepare_stream(send)
        await sink.write(b"a")
        await sink.write(b"b")
        await sink.close()
        await sink.close()
        assert send.bodies == [b"a", b"b", b""]
        assert [m.get("more_body") for m in send.messages[1:]] == [True, True, False]

    @pytest.mark.asyncio
    async def test_failed_write_skips_final_body(self):
        send = RecordingSend(fail_on_body=2)
        sink = await ASGISink.prepare_stream(send)
        await sink.write(b"a")
        with pytest.raises(OSError):
            await sink.write(b"b")
        with pytest.raises(ConnectionResetError):
            await sink.write(b"c")
        await sink.close()
        assert send.bodies == [b"a"]


# ── QueueSink ────────────────────────────────────────────────


class TestQueueSink:
    @pytest.mark.asyncio
    async def test_stream_yields_in_order_until_close(self):
        sink = QueueSink()

        async def produce() -> None:
            await sink.write(b"1")
            await sink.write(b"2")
            await sink.close()

        task = asyncio.create_task(produce())
        assert [chunk async for chunk in sink.stream()] == [b"1", b"2"]
        await task

    @pytest.mark.asyncio
    async def test_write_waits_for_consumer(self):
        sink = QueueSink()
        task = asyncio.create_task(sink.write(b"1"))
        for _ in range(5):
            await asyncio.sleep(0)
        assert not task.done()

        stream = sink.stream()
        assert await stream.__anext__() == b"1"
        await task
        await stream.aclose()

    @pytest.mark.asyncio
    async def test_pending_write_fails_when_consumer_leaves(self):
        sink = QueueSink()
        stream = sink.stream()
        first = asyncio.create_task(sink.write(b"1"))
        assert await stream.__anext__() == b"1"
        await first

        pending = asyncio.create_task(sink.write(b"2"))
        await asyncio.sleep(0)
        await stream.aclose()
        with pytest.raises(ConnectionResetError):
            await pending
        assert sink.consumer_gone

    @pytest.mark.asyncio
    async def test_write_after_consumer_leaves_fails(self):
        sink = QueueSink()
        stream = sink.stream()
        writer = asyncio.create_task(sink.write(b"1"))
        assert await stream.__anext__() == b"1"
        await writer
        await stream.aclose()
        assert sink.consumer_gone

        sse = SSESession(sink)
        with pytest.raises(TransportWriteError):
            await signals.patch_signals(sse, {"a": 1})
        assert sse.closed

    @pytest.mark.asyncio
    async def test_write_after_close_fails(self):
        sink = QueueSink()
        await sink.close()
        with pytest.raises(ConnectionResetError):
            await sink.write(b"x")


# ── DatastarResponse ─────────────────────────────────────────


class TestDatastarResponse:
    @pytest.mark.asyncio
    async def test_streams_handler_frames(self):
        async def handler(sse: SSESession) -> None:
            await signals.patch_signals(sse, {"count": 1})
            await elements.patch_elements(sse, "<p id='c'>1</p>", "#c")

        send = RecordingSend()
        response = DatastarResponse(handler)
        await response({"type": "http", "path": "/"}, _receive, send)

        assert send.messages[0]["status"] == 200
        assert send.headers[b"content-type"].startswith(b"text/event-stream")
        assert send.headers[b"cache-control"] == b"no-cache"
        assert b"content-length" not in send.headers
        frames = [decode_frame(body) for body in send.bodies if body]
        assert [f.event_type.value for f in frames] == [
            "datastar-patch-signals",
            "datastar-patch-elements",
        ]
        assert send.messages[-1] == {"type": "http.response.body", "body": b"", "more_body": False}

    @pytest.mark.asyncio
    async def test_disconnect_ends_stream_quietly(self):
        reached_end = False

        async def handler(sse: SSESession) -> None:
            nonlocal reached_end
            await signals.patch_signals(sse, {"n": 1})
            await signals.patch_signals(sse, {"n": 2})
            reached_end = True

        send = RecordingSend(fail_on_body=2)
        await DatastarResponse(handler)({"type": "http", "path": "/"}, _receive, send)

        assert not reached_end
        assert len(send.bodies) == 1

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self):
        async def handler(sse: SSESession) -> None:
            raise RuntimeError("bug")

        with pytest.raises(RuntimeError, match="bug"):
            await DatastarResponse(handler)({"type": "http", "path": "/"}, _receive, RecordingSend())

    def test_custom_status_and_headers(self):
        async def handler(sse: SSESession) -> None:
            return None

        response = DatastarResponse(handler, status_code=202, headers={"X-Trace": "t1"})
        assert response.status_code == 202
        assert response.headers["x-trace"] == "t1"
        assert response.headers["x-accel-buffering"] == "no"


# ── event_source_response ────────────────────────────────────


class TestEventSourceResponse:
    @pytest.mark.asyncio
    async def test_body_iterator_yields_encoded_frames(self):
        async def handler(sse: SSESession) -> None:
            for n in range(3):
                await signals.patch_signals(sse, {"n": n})
                await asyncio.sleep(0)

        response = event_source_response(handler, ping=30)
        assert isinstance(response, EventSourceResponse)

        chunks = [chunk async for chunk in response.body_iterator]
        frames = [decode_frame(chunk) for chunk in chunks]
        assert [f.data_lines for f in frames] == [
            (f'signals {{"n":{n}}}',) for n in range(3)
        ]

    @pytest.mark.asyncio
    async def test_handler_error_propagates_to_consumer(self):
        async def handler(sse: SSESession) -> None:
            await signals.patch_signals(sse, {"n": 1})
            raise ValueError("broken handler")

        response = event_source_response(handler, ping=30)
        with pytest.raises(ValueError, match="broken handler"):
            async for _ in response.body_iterator:
                pass

    @pytest.mark.asyncio
    async def test_producer_stays_one_frame_ahead_of_consumer(self):
        emitted = 0

        async def handler(sse: SSESession) -> None:
            nonlocal emitted
            for n in range(10_000):
                await signals.patch_signals(sse, {"n": n})
                emitted += 1

        response = event_source_response(handler, ping=30)
        body = response.body_iterator
        first = await body.__anext__()
        for _ in range(5):
            await asyncio.sleep(0)

        assert decode_frame(first).data_lines == ('signals {"n":0}',)
        assert emitted <= 2
        await body.aclose()
