from __future__ import annotations

from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

RiskLevel = Literal["low", "medium", "high", "critical"]


class ResidentCreateRequest(BaseModel):
    first_name: str = Field(min_length=1, max_length=120)
    last_name: str = Field(min_length=1, max_length=120)
    date_of_birth: date | None = None
    property_id: UUID | None = None
    risk_level: RiskLevel = "low"


class ResidentUpdateRequest(BaseModel):
    first_name: str | None = Field(default=None, min_length=1, max_length=120)
    last_name: str | None = Field(default=None, min_length=1, max_length=120)
    date_of_birth: date | None = None
    property_id: UUID | None = None
    risk_level: RiskLevel | None = None
    status: Literal["active", "moved_on", "inactive"] | None = None

    @model_validator(mode="after")
    def reject_null_required_fields(self) -> ResidentUpdateRequest:
        # Only date_of_birth and property_id can be cleared with an explicit null.
        for field in ("first_name", "last_name", "risk_level", "status"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class ResidentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    first_name: str
    last_name: str
    date_of_birth: date | None = None
    property_id: UUID | None = None
    risk_level: str
    status: str
    created_at: datetime
