from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PropertyCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    address: str = Field(min_length=1, max_length=500)
    property_type: str = Field(default="shared_housing", max_length=50)
    total_units: int = Field(default=1, ge=1, le=1000)


class PropertyUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    address: str | None = Field(default=None, min_length=1, max_length=500)
    property_type: str | None = Field(default=None, max_length=50)
    total_units: int | None = Field(default=None, ge=1, le=1000)
    occupied_units: int | None = Field(default=None, ge=0)


class PropertyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    address: str
    property_type: str
    total_units: int
    occupied_units: int
    created_at: datetime
