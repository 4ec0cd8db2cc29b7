"""Create the YUTHUB subscription products and prices in Stripe.

Every price carries ``metadata.tier`` so webhook events can be mapped back to a
subscription tier. The printed JSON can be used as STRIPE_PRICE_TIER_MAP_JSON.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass

import click
import stripe

from yuthub.core.billing import PLANS
from yuthub.core.config import settings

logger = logging.getLogger(__name__)

ANNUAL_DISCOUNT_PERCENT = 15


@dataclass(slots=True)
class CreatedTier:
    tier: str
    product_id: str
    monthly_price_id: str
    annual_price_id: str


def annual_amount_pence(monthly_price: int) -> int:
    return round(monthly_price * 100 * 12 * (100 - ANNUAL_DISCOUNT_PERCENT) / 100)


def create_tier(tier: str, currency: str, api_key: str) -> CreatedTier:
    plan = PLANS[tier]
    product = stripe.Product.create(
        api_key=api_key,
        name=f"YUTHUB {plan.name}",
        description=plan.description,
        metadata={"tier": tier, "platform": "yuthub"},
    )
    monthly = stripe.Price.create(
        api_key=api_key,
        product=product["id"],
        unit_amount=plan.monthly_price * 100,
        currency=currency,
        recurring={"interval": "month", "usage_type": "licensed"},
        lookup_key=f"{tier}_monthly",
        metadata={"tier": tier, "billing_period": "month"},
    )
    annual = stripe.Price.create(
        api_key=api_key,
        product=product["id"],
        unit_amount=annual_amount_pence(plan.monthly_price),
        currency=currency,
        recurring={"interval": "year", "usage_type": "licensed"},
        lookup_key=f"{tier}_annual",
        metadata={
            "tier": tier,
            "billing_period": "year",
            "discount_percent": str(ANNUAL_DISCOUNT_PERCENT),
        },
    )
    return CreatedTier(
        tier=tier,
        product_id=product["id"],
        monthly_price_id=monthly["id"],
        annual_price_id=annual["id"],
    )


def price_tier_map(created: list[CreatedTier]) -> dict[str, str]:
    mapping: dict[str, str] = {}
    for item in created:
        mapping[item.monthly_price_id] = item.tier
        mapping[item.annual_price_id] = item.tier
    return mapping


@click.command()
@click.option("--currency", default="gbp", show_default=True, help="ISO currency for the prices.")
@click.option(
    "--tier",
    "tiers",
    multiple=True,
    type=click.Choice(["starter", "professional", "enterprise"]),
    help="Limit setup to these tiers (repeatable). Defaults to all paid tiers.",
)
def main(currency: str, tiers: tuple[str, ...]) -> None:
    """Create products and prices for the paid subscription tiers."""
    logging.basicConfig(level=logging.INFO)
    if not settings.stripe_secret_key:
        raise click.ClickException("STRIPE_SECRET_KEY is required")

    selected = tiers or ("starter", "professional", "enterprise")
    created: list[CreatedTier] = []
    for tier in selected:
        item = create_tier(tier, currency, settings.stripe_secret_key)
        logger.info(
            "Created %s product=%s monthly=%s annual=%s",
            tier,
            item.product_id,
            item.monthly_price_id,
            item.annual_price_id,
        )
        created.append(item)

    click.echo(json.dumps(price_tier_map(created), indent=2))


if __name__ == "__main__":
    main()
