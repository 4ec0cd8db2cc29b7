from __future__ import annotations

import logging

import redis.asyncio as redis
from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from yuthub.core.auth import AuthContext, require_platform_admin
from yuthub.core.config import settings
from yuthub.core.db import get_db_session
from yuthub.models.organization import Organization
from yuthub.schemas.admin import OrganizationSubscriptionStatus, SystemHealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/organizations", response_model=list[OrganizationSubscriptionStatus])
async def list_organizations(
    subscription_status: str | None = Query(default=None),
    _: AuthContext = Depends(require_platform_admin),
    session: AsyncSession = Depends(get_db_session),
) -> list[OrganizationSubscriptionStatus]:
    stmt = select(Organization).order_by(Organization.created_at)
    if subscription_status:
        stmt = stmt.where(Organization.subscription_status == subscription_status)
    organizations = (await session.scalars(stmt)).all()

    cached_statuses: list[str | None] = [None] * len(organizations)
    if organizations:
        redis_client = redis.from_url(settings.redis_url, decode_responses=True)
        try:
            cached_statuses = await redis_client.mget(
                [f"organization:subscription_status:{organization.id}" for organization in organizations]
            )
        except Exception:
            logger.exception("Subscription status cache lookup failed")
        finally:
            await redis_client.aclose()

    return [
        OrganizationSubscriptionStatus(
            organization_id=str(organization.id),
            name=organization.name,
            subscription_tier=organization.subscription_tier,
            subscription_status=organization.subscription_status,
            cached_status=cached,
            stripe_customer_id=organization.stripe_customer_id,
        )
        for organization, cached in zip(organizations, cached_statuses)
    ]


@router.get("/system/health", response_model=SystemHealthResponse)
async def system_health(
    _: AuthContext = Depends(require_platform_admin),
    session: AsyncSession = Depends(get_db_session),
) -> SystemHealthResponse:
    database_ok = True
    total_organizations = 0
    past_due_organizations = 0
    try:
        await session.execute(text("SELECT 1"))
        total_organizations = int(await session.scalar(select(func.count(Organization.id))) or 0)
        past_due_organizations = int(
            await session.scalar(
                select(func.count(Organization.id)).where(Organization.subscription_status == "past_due")
            )
            or 0
        )
    except Exception:
        logger.exception("Database health check failed")
        database_ok = False

    redis_ok = True
    redis_client = redis.from_url(settings.redis_url, decode_responses=True)
    try:
        redis_ok = bool(await redis_client.ping())
    except Exception:
        logger.exception("Redis health check failed")
        redis_ok = False
    finally:
        await redis_client.aclose()

    status_value = "ok" if database_ok and redis_ok else "degraded"
    return SystemHealthResponse(
        status=status_value,
        database_ok=database_ok,
        redis_ok=redis_ok,
        stripe_enabled=settings.stripe_enabled,
        total_organizations=total_organizations,
        past_due_organizations=past_due_organizations,
    )
