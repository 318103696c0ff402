"""Catalogue schemas: parks, categories and programs."""

from datetime import date as date_type, datetime, time
from typing import Optional

from pydantic import Field, model_validator

from ..core.enums import ProgramLevel
from ._strict_base import OrmModel, StrictModel, StrictRequestModel


class ParkResponse(OrmModel):
    id: str
    name: str
    address: Optional[str] = None
    area: Optional[str] = None
    prefecture: Optional[str] = None
    nearest_station: Optional[str] = None
    has_shower: bool = False
    has_parking: bool = False
    image_url: Optional[str] = None


class CategoryResponse(OrmModel):
    id: str
    name: str
    description: Optional[str] = None
    sort_order: int = 0


class CapacityStatus(StrictModel):
    capacity: int
    current_count: int
    remaining: int
    is_full: bool
    is_almost_full: bool


class ProgramSummary(StrictModel):
    id: str
    title: str
    date: date_type
    start_time: time
    end_time: time
    price: int
    status: str
    level: Optional[str] = None
    park_id: str
    park_name: Optional[str] = None
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    availability: CapacityStatus


class ProgramDetail(ProgramSummary):
    description: Optional[str] = None
    park: Optional[ParkResponse] = None
    category: Optional[CategoryResponse] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProgramCreate(StrictRequestModel):
    park_id: str
    category_id: Optional[str] = None
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    date: date_type
    start_time: time
    end_time: time
    price: int = Field(..., ge=0, description="Price in the smallest currency unit")
    capacity: int = Field(..., gt=0)
    level: Optional[ProgramLevel] = None

    @model_validator(mode="after")
    def _check_time_range(self) -> "ProgramCreate":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class ProgramUpdate(StrictRequestModel):
    park_id: Optional[str] = None
    category_id: Optional[str] = None
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    date: Optional[date_type] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    price: Optional[int] = Field(None, ge=0)
    capacity: Optional[int] = Field(None, gt=0)
    level: Optional[ProgramLevel] = None


class ProgramStatusUpdate(StrictRequestModel):
    # Validated by the service so unknown values map to a 400 like other domain errors.
    status: str
