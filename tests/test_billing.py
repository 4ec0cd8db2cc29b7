from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from uuid import uuid4

import pytest
from fastapi import HTTPException

from yuthub.core import billing
from yuthub.core.billing import (
    PLANS,
    effective_subscription_status,
    enforce_property_limit,
    enforce_resident_limit,
    get_current_entitlements,
    get_current_organization,
    require_active_subscription,
    require_module,
    require_tier,
    tier_to_entitlements,
)

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def _organization(**overrides: object) -> SimpleNamespace:
    values = {
        "id": uuid4(),
        "subscription_tier": "professional",
        "subscription_status": "active",
        "trial_ends_at": None,
        "subscription_ends_at": None,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def _counting_repo(total: int) -> type:
    class _Repo:
        def __init__(self, session) -> None:  # noqa: ANN001
            pass

        async def count(self) -> int:
            return total

    return _Repo


def test_paid_plans_are_ordered_by_price() -> None:
    prices = [PLANS[tier].monthly_price for tier in ("starter", "professional", "enterprise")]
    assert prices == sorted(prices)
    assert all(PLANS[tier].annual_price < PLANS[tier].monthly_price for tier in ("starter", "professional", "enterprise"))


def test_tier_to_entitlements_known_tiers() -> None:
    starter = tier_to_entitlements("starter")
    assert starter.max_residents == 10
    assert starter.max_properties == 1
    assert starter.has_module("housing") is True
    assert starter.has_module("safeguarding") is False

    enterprise = tier_to_entitlements("Enterprise")
    assert enterprise.tier == "enterprise"
    assert enterprise.max_residents is None
    assert enterprise.has_module("crisis") is True


@pytest.mark.parametrize("tier", [None, "", "free", "gold"])
def test_tier_to_entitlements_falls_back_to_trial(tier: str | None) -> None:
    entitlements = tier_to_entitlements(tier)
    assert entitlements.tier == "trial"
    assert entitlements.max_residents == PLANS["trial"].max_residents
    assert entitlements.modules == PLANS["trial"].modules


def test_effective_status_lapsed_trial() -> None:
    organization = _organization(
        subscription_tier="trial",
        subscription_status="trial",
        trial_ends_at=NOW - timedelta(days=1),
    )
    assert effective_subscription_status(organization, now=NOW) == "canceled"


def test_effective_status_running_trial() -> None:
    organization = _organization(
        subscription_tier="trial",
        subscription_status="trial",
        trial_ends_at=NOW + timedelta(days=3),
    )
    assert effective_subscription_status(organization, now=NOW) == "trial"


def test_effective_status_ended_subscription() -> None:
    organization = _organization(subscription_ends_at=NOW - timedelta(minutes=1))
    assert effective_subscription_status(organization, now=NOW) == "canceled"


def test_effective_status_uses_stored_value() -> None:
    assert effective_subscription_status(_organization(subscription_status="past_due"), now=NOW) == "past_due"


@pytest.mark.asyncio
async def test_get_current_organization_found() -> None:
    organization = _organization()

    class _Session:
        async def scalar(self, _stmt):  # noqa: ANN001
            return organization

    context = SimpleNamespace(organization_id=organization.id)
    assert await get_current_organization(context, _Session()) is organization


@pytest.mark.asyncio
async def test_get_current_organization_missing() -> None:
    class _Session:
        async def scalar(self, _stmt):  # noqa: ANN001
            return None

    with pytest.raises(HTTPException) as exc:
        await get_current_organization(SimpleNamespace(organization_id=uuid4()), _Session())
    assert exc.value.status_code == 403


@pytest.mark.asyncio
async def test_get_current_entitlements_reads_tier() -> None:
    entitlements = await get_current_entitlements(_organization(subscription_tier="starter"))
    assert entitlements.tier == "starter"


@pytest.mark.asyncio
@pytest.mark.parametrize("status_value", ["canceled", "cancelled", "past_due"])
async def test_require_active_subscription_blocks_inactive(status_value: str) -> None:
    with pytest.raises(HTTPException) as exc:
        await require_active_subscription(_organization(subscription_status=status_value))
    assert exc.value.status_code == 403


@pytest.mark.asyncio
async def test_require_active_subscription_allows_trial() -> None:
    organization = _organization(
        subscription_tier="trial",
        subscription_status="trial",
        trial_ends_at=datetime.now(timezone.utc) + timedelta(days=7),
    )
    assert await require_active_subscription(organization) is organization


@pytest.mark.asyncio
async def test_require_tier() -> None:
    dependency = require_tier("professional")
    assert (await dependency(tier_to_entitlements("enterprise"))).tier == "enterprise"

    with pytest.raises(HTTPException) as exc:
        await dependency(tier_to_entitlements("starter"))
    assert exc.value.status_code == 403
    assert "requires professional plan" in exc.value.detail

    with pytest.raises(HTTPException):
        await dependency(tier_to_entitlements("trial"))


@pytest.mark.asyncio
async def test_require_module() -> None:
    dependency = require_module("safeguarding")
    assert (await dependency(tier_to_entitlements("professional"))).tier == "professional"

    with pytest.raises(HTTPException) as exc:
        await dependency(tier_to_entitlements("starter"))
    assert exc.value.status_code == 403


def test_require_module_rejects_unknown_module() -> None:
    with pytest.raises(ValueError):
        require_module("payroll")


@pytest.mark.asyncio
async def test_enforce_resident_limit(monkeypatch: pytest.MonkeyPatch) -> None:
    organization = _organization(subscription_tier="starter")
    entitlements = tier_to_entitlements("starter")

    monkeypatch.setattr(billing, "ResidentRepository", _counting_repo(9))
    assert await enforce_resident_limit(organization, entitlements, object()) is entitlements

    monkeypatch.setattr(billing, "ResidentRepository", _counting_repo(10))
    with pytest.raises(HTTPException) as exc:
        await enforce_resident_limit(organization, entitlements, object())
    assert exc.value.status_code == 403


@pytest.mark.asyncio
async def test_enforce_limits_skip_unlimited_plans(monkeypatch: pytest.MonkeyPatch) -> None:
    class _Unused:
        def __init__(self, session) -> None:  # noqa: ANN001
            raise AssertionError("unlimited plans must not count rows")

    monkeypatch.setattr(billing, "ResidentRepository", _Unused)
    monkeypatch.setattr(billing, "PropertyRepository", _Unused)
    entitlements = tier_to_entitlements("enterprise")
    organization = _organization(subscription_tier="enterprise")

    assert await enforce_resident_limit(organization, entitlements, object()) is entitlements
    assert await enforce_property_limit(organization, entitlements, object()) is entitlements


@pytest.mark.asyncio
async def test_enforce_property_limit(monkeypatch: pytest.MonkeyPatch) -> None:
    entitlements = tier_to_entitlements("professional")
    monkeypatch.setattr(billing, "PropertyRepository", _counting_repo(5))
    with pytest.raises(HTTPException) as exc:
        await enforce_property_limit(_organization(), entitlements, object())
    assert "property limit (5)" in exc.value.detail
