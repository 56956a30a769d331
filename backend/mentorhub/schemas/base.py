"""
Base schemas with standardized field types for consistent API responses.

The wire format is camelCase; Python code uses snake_case field names.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class StandardizedModel(BaseModel):  # type: ignore[misc]
    """Base model with standardized JSON encoding"""

    model_config = ConfigDict(
        use_enum_values=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )
