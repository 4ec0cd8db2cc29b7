"""Apply Stripe billing events to organizations.

Every handler writes absolute values (status, tier, ids), so replaying an
event leaves the organization in the same state. Events that cannot be tied to
an organization are logged and ignored.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

import redis.asyncio as redis
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from yuthub.core.billing import TIER_LEVELS
from yuthub.core.config import settings
from yuthub.core.db import apply_rls_organization_context
from yuthub.core.email import EmailService, render_dunning_email
from yuthub.core.stripe_client import StripeBillingClient
from yuthub.models.activity_log import SYSTEM_USER_ID, ActivityLog
from yuthub.models.organization import Organization

logger = logging.getLogger(__name__)

FREE_TIER = "free"


@dataclass(slots=True)
class EventOutcome:
    event_type: str
    organization_id: UUID | None = None
    updated: bool = False
    subscription_status: str | None = None


def map_price_to_tier(price: dict | None) -> str | None:
    """Resolve a Stripe price to a subscription tier, or None when it is not recognised."""
    if not price:
        return None

    metadata_tier = ((price.get("metadata") or {}).get("tier") or "").strip().lower()
    if metadata_tier in TIER_LEVELS:
        return metadata_tier

    configured = settings.stripe_price_tiers().get(price.get("id") or "")
    if configured and configured.lower() in TIER_LEVELS:
        return configured.lower()

    lookup_key = (price.get("lookup_key") or "").strip().lower()
    prefix = lookup_key.split("_", 1)[0]
    if prefix in TIER_LEVELS:
        return prefix

    logger.warning("No subscription tier mapped for Stripe price=%s", price.get("id"))
    return None


def _first_price(subscription: dict) -> dict | None:
    items = (subscription.get("items") or {}).get("data") or []
    if not items:
        return None
    return items[0].get("price")


def _format_amount(invoice: dict) -> str:
    currency = (invoice.get("currency") or "").upper()
    amount = (invoice.get("amount_paid") or 0) / 100
    return f"{currency} {amount:.2f}"


async def publish_organization_status(organization_id: UUID, subscription_status: str) -> None:
    redis_client = redis.from_url(settings.redis_url, decode_responses=True)
    try:
        await redis_client.set(f"organization:subscription_status:{organization_id}", subscription_status)
        await redis_client.publish(f"billing:organization_status:{organization_id}", subscription_status)
    finally:
        await redis_client.aclose()


class BillingEventProcessor:
    def __init__(
        self,
        session: AsyncSession,
        stripe_client: StripeBillingClient | None = None,
        email_service: EmailService | None = None,
    ) -> None:
        self.session = session
        self.stripe_client = stripe_client or StripeBillingClient()
        self.email_service = email_service or EmailService()
        self._handlers: dict[str, Callable[[dict], Awaitable[EventOutcome]]] = {
            "checkout.session.completed": self.handle_checkout_completed,
            "invoice.paid": self.handle_invoice_paid,
            "invoice.payment_failed": self.handle_payment_failed,
            "customer.subscription.deleted": self.handle_subscription_deleted,
            "customer.subscription.updated": self.handle_subscription_updated,
        }

    async def process(self, event: dict) -> EventOutcome:
        event_type = event.get("type") or "unknown"
        handler = self._handlers.get(event_type)
        if handler is None:
            logger.info("Unhandled Stripe event type=%s id=%s", event_type, event.get("id"))
            return EventOutcome(event_type=event_type)

        data = (event.get("data") or {}).get("object") or {}
        logger.info("Processing Stripe event type=%s id=%s object=%s", event_type, event.get("id"), data.get("id"))
        outcome = await handler(data)

        if outcome.updated and outcome.organization_id and outcome.subscription_status:
            try:
                await publish_organization_status(outcome.organization_id, outcome.subscription_status)
            except Exception:
                logger.exception(
                    "Failed to publish subscription status for organization=%s", outcome.organization_id
                )
        return outcome

    async def _organization_by_customer(self, customer_id: str | None) -> Organization | None:
        if not customer_id:
            return None
        return await self.session.scalar(
            select(Organization).where(Organization.stripe_customer_id == customer_id)
        )

    async def _log_activity(self, organization_id: UUID, action: str, entity_type: str, description: str) -> None:
        await apply_rls_organization_context(self.session, organization_id)
        self.session.add(
            ActivityLog(
                organization_id=organization_id,
                user_id=SYSTEM_USER_ID,
                action=action,
                entity_type=entity_type,
                description=description,
            )
        )

    async def handle_checkout_completed(self, checkout: dict) -> EventOutcome:
        event_type = "checkout.session.completed"
        raw_org_id = (checkout.get("metadata") or {}).get("organization_id")
        if not raw_org_id:
            logger.error("No organization_id in checkout session metadata session=%s", checkout.get("id"))
            return EventOutcome(event_type=event_type)

        try:
            organization_id = UUID(str(raw_org_id))
        except ValueError:
            logger.error("Malformed organization_id=%r in checkout session=%s", raw_org_id, checkout.get("id"))
            return EventOutcome(event_type=event_type)

        organization = await self.session.scalar(
            select(Organization).where(Organization.id == organization_id)
        )
        if organization is None:
            logger.error("Organization not found for checkout organization_id=%s", organization_id)
            return EventOutcome(event_type=event_type)

        subscription_id = checkout.get("subscription")
        tier = None
        if subscription_id:
            subscription = await self.stripe_client.retrieve_subscription(subscription_id)
            tier = map_price_to_tier(_first_price(subscription))

        organization.subscription_status = "active"
        if tier is not None:
            organization.subscription_tier = tier
        organization.stripe_customer_id = checkout.get("customer") or organization.stripe_customer_id
        organization.stripe_subscription_id = subscription_id
        organization.trial_ends_at = None
        organization.updated_at = datetime.now(timezone.utc)
        await self._log_activity(
            organization.id, "subscription_activated", "subscription", "Subscription activated via Stripe"
        )
        await self.session.commit()

        logger.info("Subscription activated for organization=%s tier=%s", organization.id, tier)
        return EventOutcome(
            event_type=event_type,
            organization_id=organization.id,
            updated=True,
            subscription_status="active",
        )

    async def handle_invoice_paid(self, invoice: dict) -> EventOutcome:
        event_type = "invoice.paid"
        organization = await self._organization_by_customer(invoice.get("customer"))
        if organization is None:
            logger.error("Organization not found for customer=%s", invoice.get("customer"))
            return EventOutcome(event_type=event_type)

        organization.subscription_status = "active"
        organization.updated_at = datetime.now(timezone.utc)
        await self._log_activity(
            organization.id, "payment_received", "billing", f"Payment received: {_format_amount(invoice)}"
        )
        await self.session.commit()

        logger.info("Payment logged for organization=%s invoice=%s", organization.id, invoice.get("id"))
        return EventOutcome(
            event_type=event_type,
            organization_id=organization.id,
            updated=True,
            subscription_status="active",
        )

    async def handle_payment_failed(self, invoice: dict) -> EventOutcome:
        event_type = "invoice.payment_failed"
        organization = await self._organization_by_customer(invoice.get("customer"))
        if organization is None:
            logger.error("Organization not found for customer=%s", invoice.get("customer"))
            return EventOutcome(event_type=event_type)

        organization.subscription_status = "past_due"
        organization.updated_at = datetime.now(timezone.utc)
        await self._log_activity(
            organization.id, "payment_failed", "billing", f"Payment failed for invoice {invoice.get('id')}"
        )
        await self.session.commit()

        if organization.contact_email:
            subject, body = render_dunning_email(
                organization.display_name or organization.name, invoice.get("id") or ""
            )
            try:
                await self.email_service.send(to=organization.contact_email, subject=subject, body=body)
            except Exception:
                logger.exception("Dunning email failed for organization=%s", organization.id)

        logger.info("Payment failure logged for organization=%s", organization.id)
        return EventOutcome(
            event_type=event_type,
            organization_id=organization.id,
            updated=True,
            subscription_status="past_due",
        )

    async def handle_subscription_deleted(self, subscription: dict) -> EventOutcome:
        event_type = "customer.subscription.deleted"
        organization = await self._organization_by_customer(subscription.get("customer"))
        if organization is None:
            logger.error("Organization not found for customer=%s", subscription.get("customer"))
            return EventOutcome(event_type=event_type)

        organization.subscription_status = "canceled"
        organization.subscription_tier = FREE_TIER
        organization.stripe_subscription_id = None
        organization.updated_at = datetime.now(timezone.utc)
        await self._log_activity(
            organization.id,
            "subscription_canceled",
            "subscription",
            "Subscription canceled, downgraded to free tier",
        )
        await self.session.commit()

        logger.info("Subscription canceled for organization=%s", organization.id)
        return EventOutcome(
            event_type=event_type,
            organization_id=organization.id,
            updated=True,
            subscription_status="canceled",
        )

    async def handle_subscription_updated(self, subscription: dict) -> EventOutcome:
        event_type = "customer.subscription.updated"
        organization = await self._organization_by_customer(subscription.get("customer"))
        if organization is None:
            logger.error("Organization not found for customer=%s", subscription.get("customer"))
            return EventOutcome(event_type=event_type)

        subscription_status = subscription.get("status") or organization.subscription_status
        tier = map_price_to_tier(_first_price(subscription))

        organization.subscription_status = subscription_status
        if tier is not None:
            organization.subscription_tier = tier
        organization.updated_at = datetime.now(timezone.utc)
        await self.session.commit()

        logger.info(
            "Subscription updated for organization=%s status=%s tier=%s",
            organization.id,
            subscription_status,
            tier,
        )
        return EventOutcome(
            event_type=event_type,
            organization_id=organization.id,
            updated=True,
            subscription_status=subscription_status,
        )
