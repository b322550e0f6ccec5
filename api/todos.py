"""Todo-list example: list signals plus element appends, morphs and removals.

Frontend::

    <div id="todo-app" data-signals="{todos: [], newTodoText: ''}">
      <input type="text" data-bind:newTodoText placeholder="Enter new todo" />
      <button data-on:click="@post('/todos/add'); $newTodoText = ''">Add Todo</button>
      <ul id="todo-list"></ul>
    </div>

The client owns the list in its ``todos`` signal; each request sends the
current list and the server patches back the new list and the affected
``<li>``.
"""

from __future__ import annotations

import html
import logging
import secrets
from typing import Annotated

from fastapi import APIRouter, Path, Request

from models.constants import PatchMode
from models.signals import TODO_ID_PATTERN, TodoItem, TodoSignals
from services import elements, script, signals
from services.responses import DatastarResponse
from services.signals import read_signals_as
from services.sse import SSESession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/todos", tags=["todos"])

TodoId = Annotated[str, Path(pattern=TODO_ID_PATTERN)]


def _new_todo_id() -> str:
    return secrets.token_hex(8).upper()


def _dump_todos(todos: list[TodoItem]) -> list[dict]:
    return [todo.model_dump() for todo in todos]


def render_todo(todo: TodoItem) -> str:
    """Render one ``<li>`` for *todo*.  Text is HTML-escaped.

    The id is safe to inline unescaped: :class:`TodoItem` restricts it to
    ``TODO_ID_PATTERN``.
    """
    todo_id = todo.id
    css = ' class="completed"' if todo.completed else ""
    checked = " checked" if todo.completed else ""
    return "\n".join([
        f'<li id="todo-{todo_id}"{css}>',
        f"  <input type=\"checkbox\"{checked} data-on:change=\"@post('/todos/{todo_id}/toggle')\" />",
        f"  <span>{html.escape(todo.text)}</span>",
        f"  <button data-on:click=\"@delete('/todos/{todo_id}')\">Delete</button>",
        "</li>",
    ])


@router.post("/add")
async def add_todo(request: Request):
    current = await read_signals_as(request, TodoSignals)
    text = current.new_todo_text.strip()

    if not text:
        async def reject(sse: SSESession) -> None:
            await script.console_error(sse, "Todo text is required")

        return DatastarResponse(reject)

    todo = TodoItem(id=_new_todo_id(), text=text)
    todos = [*current.todos, todo]
    logger.info("Adding todo %s (%d total)", todo.id, len(todos))

    async def stream(sse: SSESession) -> None:
        await signals.patch_signals(sse, {"todos": _dump_todos(todos), "newTodoText": ""})
        await elements.patch_elements(
            sse,
            render_todo(todo),
            "#todo-list",
            PatchMode.APPEND,
            use_view_transitions=True,
        )
        await script.console_log(sse, f"Added todo: {text}")
        await script.dispatch_custom_event(sse, "todo:added", {"id": todo.id, "text": text})

    return DatastarResponse(stream)


@router.post("/{todo_id}/toggle")
async def toggle_todo(todo_id: TodoId, request: Request):
    current = await read_signals_as(request, TodoSignals)

    toggled: TodoItem | None = None
    todos: list[TodoItem] = []
    for todo in current.todos:
        if todo.id == todo_id:
            todo = todo.model_copy(update={"completed": not todo.completed})
            toggled = todo
        todos.append(todo)

    async def stream(sse: SSESession) -> None:
        if toggled is None:
            await script.console_error(sse, f"Unknown todo: {todo_id}")
            return
        await signals.patch_signals(sse, {"todos": _dump_todos(todos)})
        await elements.patch_by_id(sse, f"todo-{todo_id}", render_todo(toggled))
        await script.console_log(sse, f"Toggled todo: {todo_id}")
        await script.dispatch_custom_event(
            sse, "todo:toggled", {"id": todo_id, "completed": toggled.completed}
        )

    return DatastarResponse(stream)


@router.delete("/{todo_id}")
async def remove_todo(todo_id: TodoId, request: Request):
    current = await read_signals_as(request, TodoSignals)
    todos = [todo for todo in current.todos if todo.id != todo_id]

    async def stream(sse: SSESession) -> None:
        await signals.patch_signals(sse, {"todos": _dump_todos(todos)})
        await elements.remove_by_id(sse, f"todo-{todo_id}")
        await script.console_log(sse, f"Removed todo: {todo_id}")
        await script.dispatch_custom_event(sse, "todo:removed", {"id": todo_id})

    return DatastarResponse(stream)
