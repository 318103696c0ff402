"""Schema baselines with forbidden extras by default."""

from pydantic import BaseModel, ConfigDict


class StrictModel(BaseModel):
    """Neutral strict base for response DTOs."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)


class OrmModel(StrictModel):
    """Response DTO that can be built straight from an ORM row."""

    model_config = ConfigDict(extra="forbid", from_attributes=True)


class StrictRequestModel(StrictModel):
    """Request DTO base that always forbids unexpected fields."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True, populate_by_name=True)
