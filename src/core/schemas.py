"""Shared pydantic building blocks for request bodies."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model accepting camelCase or snake_case keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


def upper(value: object) -> object:
    """Before-validator letting enums accept lower-case input."""
    return value.upper() if isinstance(value, str) else value
