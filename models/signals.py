"""Signal shapes for the demo endpoints.

Field names are snake_case; the browser's camelCase keys are accepted via
:class:`CamelModel` aliases.  Unknown signals are ignored.
"""

from __future__ import annotations

from pydantic import Field

from models.base import CamelModel

# Ids end up in element ids and in JS string literals in rendered markup
TODO_ID_PATTERN = r"^[A-Za-z0-9_-]+$"


class TodoItem(CamelModel):
    """One todo as held in the ``todos`` signal."""

    id: str = Field(pattern=TODO_ID_PATTERN)
    text: str
    completed: bool = False


class TodoSignals(CamelModel):
    """Signals sent by the todo-list page."""

    todos: list[TodoItem] = Field(default_factory=list)
    new_todo_text: str = ""
