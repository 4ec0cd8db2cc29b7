from __future__ import annotations

from pydantic import BaseModel


class OrganizationSubscriptionStatus(BaseModel):
    organization_id: str
    name: str
    subscription_tier: str
    subscription_status: str
    cached_status: str | None = None
    stripe_customer_id: str | None = None


class SystemHealthResponse(BaseModel):
    status: str
    database_ok: bool
    redis_ok: bool
    stripe_enabled: bool
    total_organizations: int
    past_due_organizations: int
