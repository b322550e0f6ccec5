"""Element patches: merge, replace, or remove DOM fragments on the client.

Every operation compiles to a ``datastar-patch-elements`` frame first and
only then hands the frame to the session.  Data lines, in order::

    selector <css selector>
    mode <patch mode>
    useViewTransition true        (only when enabled)
    elements <line 1 of html>
    elements <line 2 of html>
    ...

Removal sends the selector line alone.
"""

from __future__ import annotations

from errors.exceptions import InvalidConfigurationError
from models.constants import (
    DEFAULT_ELEMENT_PATCH_MODE,
    DEFAULT_ELEMENTS_USE_VIEW_TRANSITIONS,
    ELEMENTS_DATALINE,
    MODE_DATALINE,
    SELECTOR_DATALINE,
    USE_VIEW_TRANSITION_DATALINE,
    EventType,
    PatchMode,
    parse_patch_mode,
)
from models.frame import Frame
from services.frame_encoder import prefix_lines
from services.sse import SSESession


def _check_selector(selector: str) -> str:
    if not isinstance(selector, str) or not selector.strip():
        raise InvalidConfigurationError("selector", selector, "a selector is required")
    return selector


def id_selector(element_id: str) -> str:
    """CSS selector for an element id: ``"todo-1"`` → ``"#todo-1"``."""
    if not isinstance(element_id, str) or not element_id.strip():
        raise InvalidConfigurationError("element id", element_id, "an id is required")
    return f"#{element_id}"


# ── Frame builders ───────────────────────────────────────────


def build_patch(
    html: str,
    selector: str,
    mode: PatchMode | str = DEFAULT_ELEMENT_PATCH_MODE,
    use_view_transitions: bool = DEFAULT_ELEMENTS_USE_VIEW_TRANSITIONS,
    *,
    event_id: str | None = None,
    retry_ms: int | None = None,
) -> Frame:
    """Build a patch-elements frame.

    Raises:
        InvalidConfigurationError: Unknown *mode* or blank *selector*.
            Checked before any line is assembled.
    """
    patch_mode = parse_patch_mode(mode)
    _check_selector(selector)

    lines = [
        f"{SELECTOR_DATALINE}{selector}",
        f"{MODE_DATALINE}{patch_mode.value}",
    ]
    if use_view_transitions:
        lines.append(f"{USE_VIEW_TRANSITION_DATALINE}true")
    lines.extend(prefix_lines(ELEMENTS_DATALINE, html))

    return Frame(EventType.PATCH_ELEMENTS, tuple(lines), event_id, retry_ms)


def build_patch_by_id(
    element_id: str,
    html: str,
    mode: PatchMode | str = DEFAULT_ELEMENT_PATCH_MODE,
    use_view_transitions: bool = DEFAULT_ELEMENTS_USE_VIEW_TRANSITIONS,
    *,
    event_id: str | None = None,
    retry_ms: int | None = None,
) -> Frame:
    return build_patch(
        html,
        id_selector(element_id),
        mode,
        use_view_transitions,
        event_id=event_id,
        retry_ms=retry_ms,
    )


def build_remove(
    selector: str,
    *,
    event_id: str | None = None,
    retry_ms: int | None = None,
) -> Frame:
    """Build a removal frame: the selector line and nothing else."""
    _check_selector(selector)
    return Frame(
        EventType.PATCH_ELEMENTS,
        (f"{SELECTOR_DATALINE}{selector}",),
        event_id,
        retry_ms,
    )


def build_remove_by_id(
    element_id: str,
    *,
    event_id: str | None = None,
    retry_ms: int | None = None,
) -> Frame:
    return build_remove(id_selector(element_id), event_id=event_id, retry_ms=retry_ms)


# ── Session operations ───────────────────────────────────────


async def patch_elements(
    sse: SSESession,
    html: str,
    selector: str,
    mode: PatchMode | str = DEFAULT_ELEMENT_PATCH_MODE,
    use_view_transitions: bool = DEFAULT_ELEMENTS_USE_VIEW_TRANSITIONS,
    *,
    event_id: str | None = None,
    retry_ms: int | None = None,
) -> SSESession:
    """Patch elements matching *selector* with *html*.

    Examples::

        await patch_elements(sse, "<div id='box'>Done</div>", "#box")
        await patch_elements(sse, "<li>Item</li>", "ul", mode=PatchMode.APPEND)
    """
    frame = build_patch(
        html,
        selector,
        mode,
        use_view_transitions,
        event_id=event_id,
        retry_ms=retry_ms,
    )
    return await sse.emit(frame)


async def patch_by_id(
    sse: SSESession,
    element_id: str,
    html: str,
    mode: PatchMode | str = DEFAULT_ELEMENT_PATCH_MODE,
    use_view_transitions: bool = DEFAULT_ELEMENTS_USE_VIEW_TRANSITIONS,
    *,
    event_id: str | None = None,
    retry_ms: int | None = None,
) -> SSESession:
    frame = build_patch_by_id(
        element_id,
        html,
        mode,
        use_view_transitions,
        event_id=event_id,
        retry_ms=retry_ms,
    )
    return await sse.emit(frame)


async def remove_elements(
    sse: SSESession,
    selector: str,
    *,
    event_id: str | None = None,
    retry_ms: int | None = None,
) -> SSESession:
    """Remove every element matching *selector* on the client."""
    return await sse.emit(build_remove(selector, event_id=event_id, retry_ms=retry_ms))


async def remove_by_id(
    sse: SSESession,
    element_id: str,
    *,
    event_id: str | None = None,
    retry_ms: int | None = None,
) -> SSESession:
    return await sse.emit(
        build_remove_by_id(element_id, event_id=event_id, retry_ms=retry_ms)
    )


def _mode_shortcut(mode: PatchMode):
    async def shortcut(
        sse: SSESession,
        html: str,
        selector: str,
        *,
        use_view_transitions: bool = DEFAULT_ELEMENTS_USE_VIEW_TRANSITIONS,
        event_id: str | None = None,
        retry_ms: int | None = None,
    ) -> SSESession:
        return await patch_elements(
            sse,
            html,
            selector,
            mode,
            use_view_transitions,
            event_id=event_id,
            retry_ms=retry_ms,
        )

    shortcut.__name__ = shortcut.__qualname__ = f"patch_{mode.value}"
    shortcut.__doc__ = f"Patch elements matching *selector* in ``{mode.value}`` mode."
    return shortcut


# Mode shortcuts: ``await patch_append(sse, "<li>x</li>", "#list")``
patch_outer = _mode_shortcut(PatchMode.OUTER)
patch_inner = _mode_shortcut(PatchMode.INNER)
patch_replace = _mode_shortcut(PatchMode.REPLACE)
patch_prepend = _mode_shortcut(PatchMode.PREPEND)
patch_append = _mode_shortcut(PatchMode.APPEND)
patch_before = _mode_shortcut(PatchMode.BEFORE)
patch_after = _mode_shortcut(PatchMode.AFTER)
