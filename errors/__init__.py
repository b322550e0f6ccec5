"""Custom exception hierarchy for the Datastar SSE toolkit."""

from errors.exceptions import (
    ClosedSessionError,
    DatastarError,
    EventStreamError,
    InvalidConfigurationError,
    SignalDecodeError,
    TransportWriteError,
)

__all__ = [
    "ClosedSessionError",
    "DatastarError",
    "EventStreamError",
    "InvalidConfigurationError",
    "SignalDecodeError",
    "TransportWriteError",
]
