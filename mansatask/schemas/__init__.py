"""
Request schemas.

Bodies arrive camelCase and are exposed snake_case; partial updates rely on
``model_dump(exclude_unset=True)``.
"""

from datetime import timezone

from flask import request
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )


def parse_body(schema):
    """Validate the JSON body of the current request against ``schema``."""
    return schema.model_validate(request.get_json(silent=True) or {})


def parse_args(schema):
    """Validate the query string of the current request against ``schema``."""
    return schema.model_validate(request.args.to_dict())


def to_naive_utc(value):
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def lower_email(value):
    return value.lower() if isinstance(value, str) else value


__all__ = ["CamelModel", "parse_body", "parse_args", "to_naive_utc", "lower_email"]
