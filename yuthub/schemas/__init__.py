from yuthub.schemas.admin import OrganizationSubscriptionStatus, SystemHealthResponse
from yuthub.schemas.billing import (
    BillingWebhookResponse,
    CheckoutRequest,
    CheckoutResponse,
    InvoiceSummary,
    PlanResponse,
    PortalRequest,
    PortalResponse,
    SubscriptionResponse,
    UsageResponse,
)
from yuthub.schemas.organization import (
    ActivityLogEntry,
    OrganizationResponse,
    OrganizationUpdateRequest,
    RoleResponse,
)
from yuthub.schemas.property import PropertyCreateRequest, PropertyResponse, PropertyUpdateRequest
from yuthub.schemas.resident import ResidentCreateRequest, ResidentResponse, ResidentUpdateRequest

__all__ = [
    "OrganizationSubscriptionStatus",
    "SystemHealthResponse",
    "BillingWebhookResponse",
    "CheckoutRequest",
    "CheckoutResponse",
    "InvoiceSummary",
    "PlanResponse",
    "PortalRequest",
    "PortalResponse",
    "SubscriptionResponse",
    "UsageResponse",
    "ActivityLogEntry",
    "OrganizationResponse",
    "OrganizationUpdateRequest",
    "RoleResponse",
    "PropertyCreateRequest",
    "PropertyResponse",
    "PropertyUpdateRequest",
    "ResidentCreateRequest",
    "ResidentResponse",
    "ResidentUpdateRequest",
]
