"""Script execution: run JavaScript on the client through element patches.

There is no dedicated wire event for scripts: :func:`execute_script` wraps
the code in a ``<script>`` element and appends it to ``<body>``, where the
browser runs it.  By default the script removes itself after running.
The helpers below (console logging, navigation, custom events, prefetch)
are generated code sent through the same path.
"""

from __future__ import annotations

import html
import json
import re
from collections.abc import Iterable, Mapping
from typing import Any

from models.constants import PatchMode
from services import elements
from services.sse import SSESession

AUTO_REMOVE_STATEMENT = "document.currentScript.remove();"

_SCRIPT_CLOSE = re.compile(r"</(script)", re.IGNORECASE)


def _js(value: Any) -> str:
    """Encode *value* as a JavaScript literal."""
    return _SCRIPT_CLOSE.sub(r"<\\/\1", json.dumps(value, ensure_ascii=False))


def _escape_script_body(code: str) -> str:
    return _SCRIPT_CLOSE.sub(r"<\\/\1", code)


def _render_attributes(attributes: Mapping[str, Any] | None) -> str:
    if not attributes:
        return ""
    parts = []
    for name, value in attributes.items():
        if value is True:
            parts.append(f" {name}")
        elif value is False or value is None:
            continue
        else:
            parts.append(f' {name}="{html.escape(str(value), quote=True)}"')
    return "".join(parts)


def build_script(
    code: str,
    auto_remove: bool = True,
    attributes: Mapping[str, Any] | None = None,
) -> str:
    """Render *code* as a ``<script>`` fragment.

    ``True`` attribute values render as bare attributes (``defer``);
    ``False``/``None`` drop the attribute.  Any ``</script`` inside the code
    is escaped so it cannot close the tag early.
    """
    body = code
    if auto_remove:
        body = f"{code}\n{AUTO_REMOVE_STATEMENT}" if code else AUTO_REMOVE_STATEMENT
    return f"<script{_render_attributes(attributes)}>{_escape_script_body(body)}</script>"


async def execute_script(
    sse: SSESession,
    code: str,
    auto_remove: bool = True,
    attributes: Mapping[str, Any] | None = None,
    *,
    event_id: str | None = None,
    retry_ms: int | None = None,
) -> SSESession:
    """Run *code* in the browser by appending a script to ``<body>``."""
    return await elements.patch_elements(
        sse,
        build_script(code, auto_remove, attributes),
        "body",
        PatchMode.APPEND,
        event_id=event_id,
        retry_ms=retry_ms,
    )


async def console_log(sse: SSESession, message: str, **kwargs: Any) -> SSESession:
    return await execute_script(sse, f"console.log({_js(message)})", **kwargs)


async def console_error(sse: SSESession, message: str, **kwargs: Any) -> SSESession:
    return await execute_script(sse, f"console.error({_js(message)})", **kwargs)


async def redirect(sse: SSESession, url: str, **kwargs: Any) -> SSESession:
    """Navigate to *url*.

    Deferred with ``setTimeout`` so the client finishes processing the
    current event before leaving the page.
    """
    code = f"setTimeout(() => window.location.href = {_js(url)}, 0)"
    return await execute_script(sse, code, **kwargs)


async def replace_url(sse: SSESession, url: str, **kwargs: Any) -> SSESession:
    """Replace the address bar URL without navigating."""
    return await execute_script(sse, f"history.replaceState({{}}, '', {_js(url)})", **kwargs)


async def replace_url_querystring(
    sse: SSESession, querystring: str, **kwargs: Any
) -> SSESession:
    """Replace only the query string (``"?page=2"``) without navigating."""
    code = "\n".join([
        "const url = new URL(window.location);",
        f"url.search = {_js(querystring)};",
        "history.replaceState({}, '', url);",
    ])
    return await execute_script(sse, code, **kwargs)


async def dispatch_custom_event(
    sse: SSESession,
    event_name: str,
    detail: Any = None,
    *,
    selector: str | None = None,
    bubbles: bool = True,
    cancelable: bool = True,
    composed: bool = True,
    **kwargs: Any,
) -> SSESession:
    """Dispatch a ``CustomEvent`` on ``document`` or on every *selector* match.

    Example::

        await dispatch_custom_event(sse, "todo:added", {"id": "a1"})
    """
    options = {
        "detail": detail if detail is not None else {},
        "bubbles": bubbles,
        "cancelable": cancelable,
        "composed": composed,
    }
    event = f"new CustomEvent({_js(event_name)}, {_js(options)})"
    if selector is None:
        code = f"document.dispatchEvent({event});"
    else:
        code = (
            f"document.querySelectorAll({_js(selector)})"
            f".forEach((el) => el.dispatchEvent({event}));"
        )
    return await execute_script(sse, code, **kwargs)


async def prefetch(
    sse: SSESession,
    urls: Iterable[str],
    *,
    event_id: str | None = None,
    retry_ms: int | None = None,
) -> SSESession:
    """Ask the browser to prefetch *urls* via the Speculation Rules API."""
    rules = {"prefetch": [{"urls": list(urls)}]}
    fragment = f'<script type="speculationrules">{_js(rules)}</script>'
    return await elements.patch_elements(
        sse,
        fragment,
        "head",
        PatchMode.APPEND,
        event_id=event_id,
        retry_ms=retry_ms,
    )
