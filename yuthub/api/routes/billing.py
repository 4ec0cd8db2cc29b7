from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from yuthub.core.auth import AuthContext
from yuthub.core.billing import (
    PLANS,
    TierEntitlements,
    effective_subscription_status,
    get_current_entitlements,
    get_current_organization,
)
from yuthub.core.db import get_db_session
from yuthub.core.errors import ValidationError
from yuthub.core.permissions import require_permission
from yuthub.core.repositories.properties import PropertyRepository
from yuthub.core.repositories.residents import ResidentRepository
from yuthub.core.stripe_client import StripeBillingClient
from yuthub.models.organization import Organization
from yuthub.models.user_organization import UserOrganization
from yuthub.schemas.billing import (
    CheckoutRequest,
    CheckoutResponse,
    InvoiceSummary,
    PlanResponse,
    PortalRequest,
    PortalResponse,
    SubscriptionResponse,
    UsageResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/billing", tags=["billing"])


def get_stripe_client() -> StripeBillingClient:
    return StripeBillingClient()


@router.get("/plans", response_model=list[PlanResponse])
async def list_plans() -> list[PlanResponse]:
    return [
        PlanResponse(
            id=plan.id,
            name=plan.name,
            description=plan.description,
            monthly_price=plan.monthly_price,
            annual_price=plan.annual_price,
            max_residents=plan.max_residents,
            max_properties=plan.max_properties,
            modules=sorted(plan.modules),
            features=list(plan.features),
        )
        for plan in PLANS.values()
        if plan.id != "trial"
    ]


@router.get("/subscription", response_model=SubscriptionResponse)
async def get_subscription(
    organization: Organization = Depends(get_current_organization),
    entitlements: TierEntitlements = Depends(get_current_entitlements),
    stripe_client: StripeBillingClient = Depends(get_stripe_client),
) -> SubscriptionResponse:
    return SubscriptionResponse(
        tier=organization.subscription_tier,
        status=effective_subscription_status(organization),
        stripe_customer_id=organization.stripe_customer_id,
        stripe_subscription_id=organization.stripe_subscription_id,
        trial_ends_at=organization.trial_ends_at,
        max_residents=entitlements.max_residents,
        max_properties=entitlements.max_properties,
        modules=sorted(entitlements.modules),
        stripe_enabled=stripe_client.enabled,
    )


@router.get("/usage", response_model=UsageResponse)
async def get_usage(
    organization: Organization = Depends(get_current_organization),
    session: AsyncSession = Depends(get_db_session),
) -> UsageResponse:
    residents = await ResidentRepository(session).count()
    properties = await PropertyRepository(session).count()
    staff = await session.scalar(
        select(func.count(UserOrganization.id)).where(
            UserOrganization.organization_id == organization.id,
            UserOrganization.status == "active",
        )
    )
    return UsageResponse(residents=residents, properties=properties, staff=int(staff or 0))


@router.get("/invoices", response_model=list[InvoiceSummary])
async def list_invoices(
    organization: Organization = Depends(get_current_organization),
    stripe_client: StripeBillingClient = Depends(get_stripe_client),
) -> list[InvoiceSummary]:
    if not stripe_client.enabled or not organization.stripe_customer_id:
        return []

    invoices = await stripe_client.list_invoices(customer_id=organization.stripe_customer_id)
    return [
        InvoiceSummary(
            id=invoice["id"],
            status=invoice.get("status"),
            currency=invoice.get("currency"),
            amount_due=invoice.get("amount_due") or 0,
            amount_paid=invoice.get("amount_paid") or 0,
            created=invoice.get("created"),
            hosted_invoice_url=invoice.get("hosted_invoice_url"),
        )
        for invoice in invoices
    ]


@router.post("/create-checkout", response_model=CheckoutResponse)
async def create_checkout(
    payload: CheckoutRequest,
    _: AuthContext = Depends(require_permission("manage:billing")),
    organization: Organization = Depends(get_current_organization),
    session: AsyncSession = Depends(get_db_session),
    stripe_client: StripeBillingClient = Depends(get_stripe_client),
) -> CheckoutResponse:
    customer_id = organization.stripe_customer_id
    if not customer_id:
        customer = await stripe_client.create_customer(
            organization_id=str(organization.id),
            name=organization.display_name or organization.name,
            email=organization.contact_email,
        )
        customer_id = customer["id"]
        organization.stripe_customer_id = customer_id
        await session.commit()
        logger.info("Created Stripe customer=%s for organization=%s", customer_id, organization.id)

    checkout = await stripe_client.create_checkout_session(
        customer_id=customer_id,
        price_id=payload.price_id,
        organization_id=str(organization.id),
        success_url=payload.success_url,
        cancel_url=payload.cancel_url,
    )
    return CheckoutResponse(session_id=checkout["id"], url=checkout.get("url"))


@router.post("/create-portal", response_model=PortalResponse)
async def create_portal(
    payload: PortalRequest,
    _: AuthContext = Depends(require_permission("manage:billing")),
    organization: Organization = Depends(get_current_organization),
    stripe_client: StripeBillingClient = Depends(get_stripe_client),
) -> PortalResponse:
    stripe_client.require_enabled()
    if not organization.stripe_customer_id:
        raise ValidationError("No Stripe customer found")

    portal = await stripe_client.create_portal_session(
        customer_id=organization.stripe_customer_id,
        return_url=payload.return_url,
    )
    return PortalResponse(url=portal["url"])
