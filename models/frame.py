"""Frame: one complete SSE wire unit, built fresh per emitted event."""

from __future__ import annotations

from dataclasses import dataclass, field

from errors.exceptions import InvalidConfigurationError
from models.constants import EventType

_LINE_BREAKS = ("\r", "\n")


def _has_line_break(value: str) -> bool:
    return any(ch in value for ch in _LINE_BREAKS)


@dataclass(frozen=True)
class Frame:
    """An immutable SSE event ready for encoding.

    Attributes:
        event_type: The ``event:`` name.
        data_lines: Payload lines in wire order, already prefixed
            (``"selector #todo"``).  A line never contains a line break.
        event_id: Optional ``id:`` value.
        retry_ms: Optional ``retry:`` value in milliseconds.
    """

    event_type: EventType
    data_lines: tuple[str, ...] = field(default_factory=tuple)
    event_id: str | None = None
    retry_ms: int | None = None

    def __post_init__(self) -> None:
        # Lists are accepted for convenience; stored as a tuple.
        if not isinstance(self.data_lines, tuple):
            object.__setattr__(self, "data_lines", tuple(self.data_lines))

        if not isinstance(self.event_type, EventType):
            try:
                object.__setattr__(self, "event_type", EventType(self.event_type))
            except ValueError:
                raise InvalidConfigurationError("event type", self.event_type) from None

        if self.event_id is not None and _has_line_break(self.event_id):
            raise InvalidConfigurationError(
                "event id", self.event_id, "must not contain line breaks"
            )

        if self.retry_ms is not None and (
            isinstance(self.retry_ms, bool)
            or not isinstance(self.retry_ms, int)
            or self.retry_ms < 0
        ):
            raise InvalidConfigurationError(
                "retry", self.retry_ms, "must be a non-negative integer"
            )

        for line in self.data_lines:
            if _has_line_break(line):
                raise InvalidConfigurationError(
                    "data line", line, "split multi-line payloads before framing"
                )
