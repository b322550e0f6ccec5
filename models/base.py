"""Base model with camelCase field aliases.

Datastar signals are named in the browser's camelCase (``newTodoText``);
shapes derived from this model accept those keys and keep snake_case
attributes on the Python side.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for signal shapes and payloads exchanged with the browser."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )
