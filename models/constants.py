"""Datastar protocol vocabulary: event types, data-line prefixes, defaults.

Every string that ends up on the wire is defined here once; builders never
spell a prefix or event name inline.
"""

from __future__ import annotations

from enum import Enum

from errors.exceptions import InvalidConfigurationError


class EventType(str, Enum):
    """SSE ``event:`` names understood by the Datastar client."""

    PATCH_ELEMENTS = "datastar-patch-elements"
    PATCH_SIGNALS = "datastar-patch-signals"
    EXECUTE_SCRIPT = "datastar-execute-script"  # Legacy, sent as an element patch
    REMOVE_ELEMENTS = "datastar-remove-elements"  # Legacy, sent as an element patch


class PatchMode(str, Enum):
    """How patched elements are merged into the target."""

    OUTER = "outer"  # Morph the whole element (default)
    INNER = "inner"  # Morph the element's children only
    REMOVE = "remove"  # Delete the target
    REPLACE = "replace"  # Swap the element without morphing
    PREPEND = "prepend"  # Insert as first child
    APPEND = "append"  # Insert as last child
    BEFORE = "before"  # Insert as previous sibling
    AFTER = "after"  # Insert as next sibling


# ── Data-line prefixes ───────────────────────────────────────

SELECTOR_DATALINE = "selector "
MODE_DATALINE = "mode "
ELEMENTS_DATALINE = "elements "
USE_VIEW_TRANSITION_DATALINE = "useViewTransition "
SIGNALS_DATALINE = "signals "
ONLY_IF_MISSING_DATALINE = "onlyIfMissing "
SCRIPT_DATALINE = "script "

# ── Defaults ─────────────────────────────────────────────────

DEFAULT_SSE_RETRY_DURATION = 1000  # milliseconds
DEFAULT_ELEMENT_PATCH_MODE = PatchMode.OUTER
DEFAULT_ELEMENTS_USE_VIEW_TRANSITIONS = False
DEFAULT_PATCH_SIGNALS_ONLY_IF_MISSING = False

# Query parameter carrying the signal snapshot on GET requests
DATASTAR_QUERY_PARAM = "datastar"


def parse_patch_mode(mode: PatchMode | str) -> PatchMode:
    """Return the :class:`PatchMode` for *mode* or raise.

    Accepts enum members and their string values (``"inner"``).

    Raises:
        InvalidConfigurationError: If *mode* is not one of the eight modes.
    """
    if isinstance(mode, PatchMode):
        return mode
    try:
        return PatchMode(mode)
    except ValueError:
        raise InvalidConfigurationError(
            "patch mode",
            mode,
            f"expected one of {', '.join(m.value for m in PatchMode)}",
        ) from None


def is_valid_patch_mode(mode: object) -> bool:
    """Check membership without raising."""
    try:
        parse_patch_mode(mode)  # type: ignore[arg-type]
    except InvalidConfigurationError:
        return False
    return True
