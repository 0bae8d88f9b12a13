"""Strict schema baselines with forbidden extras by default."""

from pydantic import BaseModel, ConfigDict


class StrictModel(BaseModel):
    """Neutral strict base for response DTOs."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)


class StrictRequestModel(StrictModel):
    """Request DTO base that always forbids unexpected fields."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)


class EntityModel(BaseModel):
    """
    Immutable typed view of a store row.

    Built with ``model_validate(orm_row)``; anything the core computes on
    passes through one of these instead of an ORM object.
    """

    model_config = ConfigDict(from_attributes=True, frozen=True, extra="ignore")
