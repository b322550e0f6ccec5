"""Counter example: read a signal, patch it back, and update the DOM.

Frontend::

    <div id="counter-app" data-signals="{count: 0}">
      <div id="counter-display">Count: <span data-text="$count"></span></div>
      <button data-on:click="@get('/counter/increment')">Increment</button>
      <button data-on:click="@get('/counter/decrement')">Decrement</button>
      <button data-on:click="@get('/counter/reset')">Reset</button>
      <button data-on:click="@get('/counter/countdown')">Countdown</button>
    </div>
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, Depends, Query

from services import elements, script, signals
from services.responses import DatastarResponse, event_source_response
from services.signals import read_signals
from services.sse import SSESession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/counter", tags=["counter"])


def _current_count(current: dict[str, Any]) -> int:
    """``count`` signal as an int; anything else counts as 0."""
    value = current.get("count", 0)
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return value


def _render_display(count: int) -> str:
    return f'<div id="counter-display">Count: {count}</div>'


def _counter_stream(count: int, action: str):
    async def stream(sse: SSESession) -> None:
        await signals.patch_signals(sse, {"count": count})
        await elements.patch_elements(sse, _render_display(count), "#counter-display")
        await script.console_log(sse, f"Counter {action} to {count}")
        await script.dispatch_custom_event(
            sse, "counter:changed", {"value": count, "action": action}
        )

    return stream


@router.get("/increment")
async def increment(current: dict = Depends(read_signals)):
    count = _current_count(current) + 1
    logger.info("Counter incremented to %d", count)
    return DatastarResponse(_counter_stream(count, "incremented"))


@router.get("/decrement")
async def decrement(current: dict = Depends(read_signals)):
    count = _current_count(current) - 1
    logger.info("Counter decremented to %d", count)
    return DatastarResponse(_counter_stream(count, "decremented"))


@router.get("/reset")
async def reset():
    return DatastarResponse(_counter_stream(0, "reset"))


@router.get("/countdown")
async def countdown(
    start: int = Query(default=5, ge=0, le=60),
    interval: float = Query(default=1.0, ge=0, le=10),
):
    """Long-lived stream: tick the ``count`` signal down to zero."""

    async def stream(sse: SSESession) -> None:
        for value in range(start, -1, -1):
            await signals.patch_signals(sse, {"count": value})
            await elements.patch_elements(sse, _render_display(value), "#counter-display")
            if value:
                await asyncio.sleep(interval)
        await script.console_log(sse, "Countdown finished")

    return event_source_response(stream)
