from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Literal

from fastapi import Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from yuthub.core.auth import AuthContext, require_auth_context
from yuthub.core.db import get_db_session
from yuthub.core.repositories.properties import PropertyRepository
from yuthub.core.repositories.residents import ResidentRepository
from yuthub.models.organization import Organization

logger = logging.getLogger(__name__)

SubscriptionTier = Literal["trial", "starter", "professional", "enterprise"]
PaidTier = Literal["starter", "professional", "enterprise"]

MODULES = ("housing", "support", "safeguarding", "finance", "independence", "crisis")
INACTIVE_STATUSES = frozenset({"canceled", "cancelled", "past_due"})
TIER_LEVELS: dict[str, int] = {"starter": 1, "professional": 2, "enterprise": 3}


@dataclass(frozen=True, slots=True)
class SubscriptionPlan:
    id: SubscriptionTier
    name: str
    description: str
    monthly_price: int
    annual_price: int
    max_residents: int | None
    max_properties: int | None
    modules: frozenset[str]
    features: tuple[str, ...]


_CORE_MODULES = frozenset({"housing", "support"})
_ALL_MODULES = frozenset(MODULES)

PLANS: dict[str, SubscriptionPlan] = {
    "trial": SubscriptionPlan(
        id="trial",
        name="Trial",
        description="14-day free trial",
        monthly_price=0,
        annual_price=0,
        max_residents=25,
        max_properties=1,
        modules=_CORE_MODULES,
        features=(
            "Up to 25 residents",
            "1 property",
            "Basic resident management",
            "Progress tracking",
            "Email support (business hours)",
        ),
    ),
    "starter": SubscriptionPlan(
        id="starter",
        name="Starter",
        description="For small charities and pilot projects",
        monthly_price=199,
        annual_price=169,
        max_residents=10,
        max_properties=1,
        modules=_CORE_MODULES,
        features=(
            "Up to 10 residents",
            "1 property location",
            "Resident intake & comprehensive profiles",
            "Support planning & progress tracking",
            "Basic reporting dashboard",
            "Email support (business hours)",
        ),
    ),
    "professional": SubscriptionPlan(
        id="professional",
        name="Professional",
        description="For growing housing organizations",
        monthly_price=499,
        annual_price=424,
        max_residents=25,
        max_properties=5,
        modules=_ALL_MODULES,
        features=(
            "Up to 25 residents",
            "Up to 5 properties/locations",
            "Safeguarding & incident reporting",
            "Financial management & budgeting",
            "Crisis intervention & emergency alerts",
            "Priority email support",
        ),
    ),
    "enterprise": SubscriptionPlan(
        id="enterprise",
        name="Enterprise",
        description="For national providers and large institutions",
        monthly_price=999,
        annual_price=849,
        max_residents=None,
        max_properties=None,
        modules=_ALL_MODULES,
        features=(
            "Unlimited residents & properties",
            "Advanced security (SSO)",
            "Dedicated technical support (24/7)",
            "SLA guarantees (99.9% uptime)",
        ),
    ),
}


@dataclass(slots=True)
class TierEntitlements:
    tier: str
    max_residents: int | None
    max_properties: int | None
    modules: frozenset[str]

    def has_module(self, module: str) -> bool:
        return module in self.modules


def tier_to_entitlements(tier: str | None) -> TierEntitlements:
    normalized = (tier or "trial").strip().lower()
    plan = PLANS.get(normalized, PLANS["trial"])
    return TierEntitlements(
        tier=normalized if normalized in PLANS else plan.id,
        max_residents=plan.max_residents,
        max_properties=plan.max_properties,
        modules=plan.modules,
    )


def effective_subscription_status(organization: Organization, now: datetime | None = None) -> str:
    """Stored status, downgraded to ``canceled`` once the trial or paid period has lapsed."""
    now = now or datetime.now(timezone.utc)
    if (
        organization.subscription_tier == "trial"
        and organization.trial_ends_at is not None
        and organization.trial_ends_at < now
    ):
        return "canceled"
    if organization.subscription_ends_at is not None and organization.subscription_ends_at < now:
        return "canceled"
    return organization.subscription_status


async def get_current_organization(
    context: AuthContext = Depends(require_auth_context),
    session: AsyncSession = Depends(get_db_session),
) -> Organization:
    organization = await session.scalar(
        select(Organization).where(Organization.id == context.organization_id)
    )
    if organization is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Organization not found",
        )
    return organization


async def get_current_entitlements(
    organization: Organization = Depends(get_current_organization),
) -> TierEntitlements:
    return tier_to_entitlements(organization.subscription_tier)


async def require_active_subscription(
    organization: Organization = Depends(get_current_organization),
) -> Organization:
    subscription_status = effective_subscription_status(organization)
    if subscription_status in INACTIVE_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=(
                "Your subscription is not active. Please update your payment method "
                "or renew your subscription."
            ),
        )
    return organization


def require_tier(min_tier: PaidTier) -> Callable[..., Awaitable[TierEntitlements]]:
    required_level = TIER_LEVELS[min_tier]

    async def _dependency(
        entitlements: TierEntitlements = Depends(get_current_entitlements),
    ) -> TierEntitlements:
        if TIER_LEVELS.get(entitlements.tier, 0) < required_level:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=(
                    f"This feature requires {min_tier} plan or higher. "
                    f"You are currently on {entitlements.tier} plan."
                ),
            )
        return entitlements

    return _dependency


def require_module(module: str) -> Callable[..., Awaitable[TierEntitlements]]:
    if module not in MODULES:
        raise ValueError(f"Unknown module: {module}")

    async def _dependency(
        entitlements: TierEntitlements = Depends(get_current_entitlements),
    ) -> TierEntitlements:
        if not entitlements.has_module(module):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=(
                    f"This feature is not available in your current plan ({entitlements.tier}). "
                    "Please upgrade to access it."
                ),
            )
        return entitlements

    return _dependency


async def enforce_resident_limit(
    _: Organization = Depends(require_active_subscription),
    entitlements: TierEntitlements = Depends(get_current_entitlements),
    session: AsyncSession = Depends(get_db_session),
) -> TierEntitlements:
    if entitlements.max_residents is None:
        return entitlements

    current = await ResidentRepository(session).count()
    if current >= entitlements.max_residents:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=(
                f"You have reached your resident limit ({entitlements.max_residents}). "
                "Please upgrade your plan to add more residents."
            ),
        )
    return entitlements


async def enforce_property_limit(
    _: Organization = Depends(require_active_subscription),
    entitlements: TierEntitlements = Depends(get_current_entitlements),
    session: AsyncSession = Depends(get_db_session),
) -> TierEntitlements:
    if entitlements.max_properties is None:
        return entitlements

    current = await PropertyRepository(session).count()
    if current >= entitlements.max_properties:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=(
                f"You have reached your property limit ({entitlements.max_properties}). "
                "Please upgrade your plan to add more properties."
            ),
        )
    return entitlements
