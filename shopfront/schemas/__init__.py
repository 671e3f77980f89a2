"""
Request/response schemas.
JSON uses camelCase; snake_case field names are accepted on input too.
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def blank_to_none(value):
    """Form posts and JS clients send "" for untouched inputs"""
    if isinstance(value, str) and not value.strip():
        return None
    return value
