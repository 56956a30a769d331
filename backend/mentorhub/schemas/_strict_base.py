"""Strict schema baselines with forbidden extras by default."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class StrictModel(BaseModel):
    """Neutral strict base for DTOs shared by requests and responses."""

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class StrictRequestModel(StrictModel):
    """Request DTO base that always forbids unexpected fields."""

    model_config = StrictModel.model_config
