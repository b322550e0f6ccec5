"""SSE frame encoder: Frame to wire text and back.

Field order is fixed and a line-oriented client depends on it::

    event: datastar-patch-elements
    id: 42
    retry: 1000
    data: selector #todo-list
    data: elements <li>Buy milk</li>
    <blank line>

``event:`` is always present, ``id:`` / ``retry:`` only when set, and the
blank terminator is written exactly once.
"""

from __future__ import annotations

import re

from errors.exceptions import InvalidConfigurationError
from models.frame import Frame

_LINE_SPLIT = re.compile(r"\r\n|\r|\n")


def split_lines(text: str) -> list[str]:
    """Split *text* on SSE line terminators (``\\r\\n``, ``\\r``, ``\\n``).

    A single trailing terminator does not yield an extra empty line, and
    the empty string yields no lines at all.
    """
    if not text:
        return []
    lines = _LINE_SPLIT.split(text)
    if len(lines) > 1 and lines[-1] == "":
        lines.pop()
    return lines


def prefix_lines(prefix: str, text: str) -> list[str]:
    """Prefix every physical line of *text*: one data line per line."""
    return [f"{prefix}{line}" for line in split_lines(text)]


def encode_frame_text(frame: Frame) -> str:
    """Serialize *frame* to SSE wire text."""
    lines = [f"event: {frame.event_type.value}"]
    if frame.event_id is not None:
        lines.append(f"id: {frame.event_id}")
    if frame.retry_ms is not None:
        lines.append(f"retry: {frame.retry_ms}")
    lines.extend(f"data: {line}" for line in frame.data_lines)
    return "\n".join(lines) + "\n\n"


def encode_frame(frame: Frame) -> bytes:
    """Serialize *frame* to UTF-8 bytes, ready to hand to a sink."""
    return encode_frame_text(frame).encode("utf-8")


def decode_frame(text: str | bytes) -> Frame:
    """Parse one encoded frame back into a :class:`Frame`.

    Only the fields written by :func:`encode_frame` are understood;
    comment lines (``: ping``) are skipped.

    Raises:
        InvalidConfigurationError: Missing or unknown ``event:`` field, or a
            non-numeric ``retry:``.
    """
    if isinstance(text, bytes):
        text = text.decode("utf-8")

    event_type: str | None = None
    event_id: str | None = None
    retry_ms: int | None = None
    data_lines: list[str] = []

    for line in split_lines(text):
        if not line or line.startswith(":"):
            continue
        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if name == "event":
            event_type = value
        elif name == "id":
            event_id = value
        elif name == "retry":
            if not value.isdigit():
                raise InvalidConfigurationError("retry", value, "must be digits")
            retry_ms = int(value)
        elif name == "data":
            data_lines.append(value)

    if event_type is None:
        raise InvalidConfigurationError("event type", None, "frame has no event line")

    return Frame(
        event_type=event_type,  # type: ignore[arg-type]
        data_lines=tuple(data_lines),
        event_id=event_id,
        retry_ms=retry_ms,
    )
