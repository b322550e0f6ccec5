"""Shared pytest fixtures for the Datastar SSE toolkit.

Provides:
- ``sink``: RecordingSink that keeps every chunk written
- ``sse``: SSESession over ``sink``
- ``failing_sink``: sink that accepts N writes, then raises BrokenPipeError
- ``make_request``: builds a Starlette Request from method/query/body
"""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import urlencode

import pytest
from starlette.requests import Request

from models.frame import Frame
from services.frame_encoder import decode_frame
from services.sse import SSESession


class RecordingSink:
    """In-memory sink: records chunks in write order."""

    def __init__(self) -> None:
        self.chunks: list[bytes] = []

    async def write(self, chunk: bytes) -> None:
        self.chunks.append(chunk)

    @property
    def text(self) -> str:
        return b"".join(self.chunks).decode("utf-8")

    def frames(self) -> list[Frame]:
        return [decode_frame(chunk) for chunk in self.chunks]


class FailingSink(RecordingSink):
    """Accepts ``fail_after`` writes, then raises on every write."""

    def __init__(self, fail_after: int = 0) -> None:
        super().__init__()
        self.fail_after = fail_after
        self.attempts = 0

    async def write(self, chunk: bytes) -> None:
        self.attempts += 1
        if len(self.chunks) >= self.fail_after:
            raise BrokenPipeError("peer went away")
        await super().write(chunk)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def sse(sink: RecordingSink) -> SSESession:
    return SSESession(sink)


@pytest.fixture
def failing_sink() -> FailingSink:
    return FailingSink(fail_after=1)


def build_request(
    method: str = "GET",
    *,
    signals: Any = None,
    raw_query: str | None = None,
    body: bytes = b"",
) -> Request:
    """Starlette Request carrying *signals* the way the Datastar client sends them."""
    query_string = b""
    if raw_query is not None:
        query_string = raw_query.encode()
    elif signals is not None and method == "GET":
        query_string = urlencode({"datastar": json.dumps(signals)}).encode()
    if signals is not None and method != "GET":
        body = json.dumps(signals).encode()

    scope = {
        "type": "http",
        "method": method,
        "path": "/",
        "root_path": "",
        "scheme": "http",
        "server": ("testserver", 80),
        "query_string": query_string,
        "headers": [(b"content-type", b"application/json")],
    }
    sent = False

    async def receive() -> dict[str, Any]:
        nonlocal sent
        if sent:
            return {"type": "http.disconnect"}
        sent = True
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(scope, receive)


@pytest.fixture
def make_request():
    return build_request
