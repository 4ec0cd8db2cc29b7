from __future__ import annotations

import json
import logging

import stripe
from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import JSONResponse

from yuthub.core.billing_events import BillingEventProcessor
from yuthub.core.config import settings
from yuthub.core.db import get_db_session
from yuthub.schemas.billing import BillingWebhookResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


def _verify_and_parse_event(raw_body: bytes, stripe_signature: str | None) -> dict:
    if not settings.stripe_secret_key or not settings.stripe_webhook_secret:
        logger.error("Stripe webhook received but Stripe is not configured")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Stripe not configured",
        )

    if not stripe_signature:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing Stripe signature",
        )

    try:
        stripe.Webhook.construct_event(
            payload=raw_body,
            sig_header=stripe_signature,
            secret=settings.stripe_webhook_secret,
        )
        return json.loads(raw_body.decode("utf-8"))
    except (ValueError, stripe.SignatureVerificationError) as exc:
        logger.warning("Webhook signature verification failed: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Webhook Error: {exc}",
        ) from exc


def get_event_processor(session: AsyncSession = Depends(get_db_session)) -> BillingEventProcessor:
    return BillingEventProcessor(session)


@router.post("/stripe", response_model=BillingWebhookResponse)
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None, alias="Stripe-Signature"),
    processor: BillingEventProcessor = Depends(get_event_processor),
) -> BillingWebhookResponse | JSONResponse:
    raw_body = await request.body()
    event = _verify_and_parse_event(raw_body, stripe_signature)

    try:
        outcome = await processor.process(event)
    except Exception:
        logger.exception("Webhook handler error for event type=%s id=%s", event.get("type"), event.get("id"))
        await processor.session.rollback()
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Webhook processing failed"},
        )

    return BillingWebhookResponse(
        received=True,
        event_type=outcome.event_type,
        organization_id=str(outcome.organization_id) if outcome.organization_id else None,
        updated=outcome.updated,
    )
