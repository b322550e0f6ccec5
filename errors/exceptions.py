"""Domain-specific exceptions for the Datastar SSE toolkit.

These exceptions let the HTTP layer distinguish between a caller that built
a bad command (nothing was written), a stream that can no longer be written
to, and a request whose signals could not be decoded.
"""

from __future__ import annotations

from typing import Any


class DatastarError(Exception):
    """Base class for all toolkit errors."""


class InvalidConfigurationError(DatastarError, ValueError):
    """A command was given a value outside its closed set, or lacks a required field.

    Raised while a frame is being built, before any wire bytes exist, so a
    caller never observes a partially encoded frame.
    """

    def __init__(self, field: str, value: Any, reason: str = "") -> None:
        self.field = field
        self.value = value
        detail = f": {reason}" if reason else ""
        super().__init__(f"Invalid {field} {value!r}{detail}")


class EventStreamError(DatastarError):
    """An event could not be written to the stream.

    Catch this to stop a handler once the stream is unusable, whatever the
    underlying cause.
    """


class ClosedSessionError(EventStreamError):
    """An emit was attempted after the session was closed."""

    def __init__(self) -> None:
        super().__init__("SSE session is closed")


class TransportWriteError(EventStreamError):
    """The underlying sink rejected a write (peer gone, broken pipe).

    The original exception is chained as ``__cause__``.
    """

    def __init__(self, event_type: str, reason: str) -> None:
        self.event_type = event_type
        super().__init__(f"Failed to write {event_type} event: {reason}")


class SignalDecodeError(DatastarError):
    """Inbound signals were malformed or did not fit the requested shape."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None) -> None:
        self.errors = errors or []
        super().__init__(message)
