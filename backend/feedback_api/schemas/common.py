"""Shared Pydantic base for wire schemas."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """
    camelCase on the wire, snake_case in Python.

    populate_by_name lets services build instances with field names and
    lets from_attributes read snake_case ORM attributes.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
