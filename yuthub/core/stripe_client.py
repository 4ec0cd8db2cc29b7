from __future__ import annotations

import asyncio
import logging
from typing import Any

import stripe

from yuthub.core.config import settings
from yuthub.core.errors import ExternalServiceError, ServiceUnavailableError

logger = logging.getLogger(__name__)


def to_plain(obj: Any) -> Any:
    """Convert a Stripe SDK object into plain dicts and lists."""
    if hasattr(obj, "to_dict_recursive"):
        return obj.to_dict_recursive()
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return obj


class StripeBillingClient:
    def __init__(self, api_key: str | None = None) -> None:
        self.api_key = api_key if api_key is not None else settings.stripe_secret_key

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def require_enabled(self) -> None:
        if not self.enabled:
            raise ServiceUnavailableError("Stripe is not configured")

    async def _call(self, operation: str, func: Any, /, **kwargs: Any) -> dict:
        self.require_enabled()
        try:
            result = await asyncio.to_thread(func, api_key=self.api_key, **kwargs)
        except stripe.StripeError as exc:
            logger.error("Stripe %s failed: %s", operation, exc)
            raise ExternalServiceError("stripe", f"Stripe {operation} failed") from exc
        return to_plain(result)

    async def retrieve_subscription(self, subscription_id: str) -> dict:
        return await self._call(
            "subscription retrieval", stripe.Subscription.retrieve, id=subscription_id
        )

    async def create_customer(self, *, organization_id: str, name: str | None, email: str | None) -> dict:
        return await self._call(
            "customer creation",
            stripe.Customer.create,
            name=name,
            email=email,
            metadata={"organization_id": organization_id},
        )

    async def create_checkout_session(
        self,
        *,
        customer_id: str,
        price_id: str,
        organization_id: str,
        success_url: str,
        cancel_url: str,
    ) -> dict:
        return await self._call(
            "checkout session creation",
            stripe.checkout.Session.create,
            customer=customer_id,
            mode="subscription",
            line_items=[{"price": price_id, "quantity": 1}],
            success_url=success_url,
            cancel_url=cancel_url,
            metadata={"organization_id": organization_id},
            subscription_data={"metadata": {"organization_id": organization_id}},
        )

    async def create_portal_session(self, *, customer_id: str, return_url: str) -> dict:
        return await self._call(
            "portal session creation",
            stripe.billing_portal.Session.create,
            customer=customer_id,
            return_url=return_url,
        )

    async def list_invoices(self, *, customer_id: str, limit: int = 100) -> list[dict]:
        result = await self._call(
            "invoice listing", stripe.Invoice.list, customer=customer_id, limit=limit
        )
        return list(result.get("data") or [])
