"""Profile schemas."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from ..core.enums import AgeGroup, Gender
from ._strict_base import OrmModel, StrictRequestModel


class ProfileResponse(OrmModel):
    id: str
    nickname: Optional[str] = None
    phone: Optional[str] = None
    gender: Optional[str] = None
    age_group: Optional[str] = None
    area: Optional[str] = None
    role: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProfileUpdate(StrictRequestModel):
    # role is never client-writable
    nickname: Optional[str] = Field(None, min_length=1, max_length=50)
    phone: Optional[str] = Field(None, max_length=20, pattern=r"^[0-9+\-() ]*$")
    gender: Optional[Gender] = None
    age_group: Optional[AgeGroup] = None
    area: Optional[str] = Field(None, max_length=100)
