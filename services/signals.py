"""Signals: patch client reactive state and read the client's snapshot.

Outbound, a ``datastar-patch-signals`` frame carries::

    onlyIfMissing true            (only when requested)
    signals {"count":42}

Inbound, the browser sends its current signals as JSON: in the
``datastar`` query parameter for GET requests, in the body otherwise.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError
from starlette.requests import Request

from errors.exceptions import SignalDecodeError
from models.constants import (
    DATASTAR_QUERY_PARAM,
    DEFAULT_PATCH_SIGNALS_ONLY_IF_MISSING,
    ONLY_IF_MISSING_DATALINE,
    SIGNALS_DATALINE,
    EventType,
)
from models.frame import Frame
from services.frame_encoder import prefix_lines
from services.sse import SSESession

logger = logging.getLogger(__name__)

T = TypeVar("T")


def dump_signals(signals: Mapping[str, Any]) -> str:
    """Compact JSON for a signal mapping.  Never contains raw newlines."""
    return json.dumps(dict(signals), ensure_ascii=False, separators=(",", ":"), default=str)


# ── Outbound ─────────────────────────────────────────────────


def build_patch(
    payload_json: str,
    only_if_missing: bool = DEFAULT_PATCH_SIGNALS_ONLY_IF_MISSING,
    *,
    event_id: str | None = None,
    retry_ms: int | None = None,
) -> Frame:
    """Build a patch-signals frame from already-serialized JSON.

    The JSON is carried verbatim.  Text that does contain line breaks is
    split into several ``signals`` lines, which the client concatenates.
    """
    lines: list[str] = []
    if only_if_missing:
        lines.append(f"{ONLY_IF_MISSING_DATALINE}true")
    lines.extend(prefix_lines(SIGNALS_DATALINE, payload_json))
    return Frame(EventType.PATCH_SIGNALS, tuple(lines), event_id, retry_ms)


async def patch_signals_raw(
    sse: SSESession,
    payload_json: str,
    only_if_missing: bool = DEFAULT_PATCH_SIGNALS_ONLY_IF_MISSING,
    *,
    event_id: str | None = None,
    retry_ms: int | None = None,
) -> SSESession:
    frame = build_patch(
        payload_json, only_if_missing, event_id=event_id, retry_ms=retry_ms
    )
    return await sse.emit(frame)


async def patch_signals(
    sse: SSESession,
    signals: Mapping[str, Any],
    only_if_missing: bool = DEFAULT_PATCH_SIGNALS_ONLY_IF_MISSING,
    *,
    event_id: str | None = None,
    retry_ms: int | None = None,
) -> SSESession:
    """Merge *signals* into the client's signal store.

    With ``only_if_missing=True`` the client keeps values it already has.
    """
    return await patch_signals_raw(
        sse,
        dump_signals(signals),
        only_if_missing,
        event_id=event_id,
        retry_ms=retry_ms,
    )


async def patch_signals_if_missing(
    sse: SSESession,
    signals: Mapping[str, Any],
    *,
    event_id: str | None = None,
    retry_ms: int | None = None,
) -> SSESession:
    return await patch_signals(
        sse, signals, True, event_id=event_id, retry_ms=retry_ms
    )


# ── Inbound ──────────────────────────────────────────────────


def _decode(raw: str | bytes | None) -> dict[str, Any]:
    """Decode a signal snapshot, raising on anything but a JSON object."""
    if raw is None or not raw.strip():
        return {}
    try:
        value = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise SignalDecodeError(f"Signals are not valid JSON: {exc}") from exc
    if not isinstance(value, dict):
        raise SignalDecodeError(
            f"Signals must be a JSON object, got {type(value).__name__}"
        )
    return value


async def _raw_signals(request: Request) -> str | bytes | None:
    if request.method == "GET":
        return request.query_params.get(DATASTAR_QUERY_PARAM)
    return await request.body()


async def read_signals(request: Request) -> dict[str, Any]:
    """Return the client's signals, or ``{}`` when absent or unreadable.

    Missing state is the normal first-request condition, so malformed
    input is logged and treated as empty rather than raised.  Works as a
    FastAPI dependency: ``signals: dict = Depends(read_signals)``.
    """
    try:
        return _decode(await _raw_signals(request))
    except SignalDecodeError as exc:
        logger.info("Ignoring unreadable signals on %s %s: %s", request.method, request.url.path, exc)
        return {}


async def read_signals_as(request: Request, shape: type[T]) -> T:
    """Read signals and coerce them into *shape*.

    *shape* may be a pydantic model, a dataclass, or a TypedDict.  Keys the
    shape does not declare are ignored unless the shape forbids extras
    (``model_config = ConfigDict(extra="forbid")``); declared fields without
    a default must be present.

    Raises:
        SignalDecodeError: Malformed JSON, a non-object payload, or values
            that cannot be coerced to the shape's field types.
    """
    signals = _decode(await _raw_signals(request))
    try:
        return TypeAdapter(shape).validate_python(signals)
    except ValidationError as exc:
        errors = exc.errors(include_url=False)
        fields = ", ".join(".".join(str(p) for p in e["loc"]) or "<root>" for e in errors)
        raise SignalDecodeError(
            f"Signals do not match {getattr(shape, '__name__', shape)!s}: {fields}",
            errors=[dict(e) for e in errors],
        ) from exc
