from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class PlanResponse(BaseModel):
    id: str
    name: str
    description: str
    monthly_price: int
    annual_price: int
    max_residents: int | None
    max_properties: int | None
    modules: list[str]
    features: list[str]


class SubscriptionResponse(BaseModel):
    tier: str
    status: str
    stripe_customer_id: str | None = None
    stripe_subscription_id: str | None = None
    trial_ends_at: datetime | None = None
    max_residents: int | None
    max_properties: int | None
    modules: list[str]
    stripe_enabled: bool


class UsageResponse(BaseModel):
    residents: int
    properties: int
    staff: int


class CheckoutRequest(BaseModel):
    price_id: str = Field(min_length=3, max_length=255)
    success_url: str = Field(min_length=1, max_length=2048)
    cancel_url: str = Field(min_length=1, max_length=2048)


class CheckoutResponse(BaseModel):
    session_id: str
    url: str | None = None


class PortalRequest(BaseModel):
    return_url: str = Field(min_length=1, max_length=2048)


class PortalResponse(BaseModel):
    url: str


class InvoiceSummary(BaseModel):
    id: str
    status: str | None = None
    currency: str | None = None
    amount_due: int = 0
    amount_paid: int = 0
    created: int | None = None
    hosted_invoice_url: str | None = None


class BillingWebhookResponse(BaseModel):
    received: bool
    event_type: str
    organization_id: str | None = None
    updated: bool
