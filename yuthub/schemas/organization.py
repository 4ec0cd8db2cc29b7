from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class OrganizationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    display_name: str | None = None
    contact_email: str | None = None
    subscription_tier: str
    subscription_status: str
    trial_ends_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class OrganizationUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=255)
    display_name: str | None = Field(default=None, max_length=255)
    contact_email: EmailStr | None = None


class ActivityLogEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    action: str
    entity_type: str
    description: str
    created_at: datetime


class RoleResponse(BaseModel):
    role: str
    display_name: str
    description: str
    permissions: list[str]
