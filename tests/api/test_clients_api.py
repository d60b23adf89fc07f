"""Tests for client follow-up endpoints."""

from decimal import Decimal

import pytest

from clientele.engine.tiers import Tier
from clientele.models import Client


@pytest.mark.asyncio
async def test_follow_ups_lists_due_clients_in_order(api_client, seed, ago) -> None:
    """Never-contacted clients come first, then the most overdue."""
    await seed(
        Client(name="Recent", tier=Tier.PLATINUM, last_contact_date=ago(2)),
        Client(name="Slightly", tier=Tier.PLATINUM, last_contact_date=ago(16)),
        Client(name="Very", tier=Tier.GOLD, last_contact_date=ago(60)),
        Client(name="Never", tier=Tier.SILVER),
    )

    response = await api_client.get("/api/clients/follow-ups")

    assert response.status_code == 200
    payload = response.json()
    assert payload["total"] == 3
    assert [item["client_name"] for item in payload["items"]] == ["Never", "Very", "Slightly"]
    assert payload["items"][1]["days_overdue"] == 39
    assert payload["items"][1]["frequency_label"] == "Every 3 weeks"
    assert payload["items"][1]["suggested_tier"] == "Bronze"


@pytest.mark.asyncio
async def test_follow_ups_filter_by_tier(api_client, seed, ago) -> None:
    """Tier filter narrows to the given tiers and drops untiered clients."""
    await seed(
        Client(name="Plat", tier=Tier.PLATINUM, last_contact_date=ago(30)),
        Client(name="Bronze", tier=Tier.BRONZE, last_contact_date=ago(90)),
        Client(name="Untiered", tier=None),
    )

    response = await api_client.get("/api/clients/follow-ups", params={"tier": "Platinum"})

    assert response.status_code == 200
    assert [item["client_name"] for item in response.json()["items"]] == ["Plat"]


@pytest.mark.asyncio
async def test_record_contact_resets_schedule(api_client, seed, ago) -> None:
    """Recording contact moves the next follow-up one cadence out."""
    (client,) = await seed(Client(name="Ava", tier=Tier.PLATINUM, last_contact_date=ago(30)))

    response = await api_client.post(f"/api/clients/{client.id}/contact")

    assert response.status_code == 200
    payload = response.json()
    assert payload["needs_follow_up"] is False
    assert payload["days_overdue"] == -14
    assert payload["last_contact_date"] is not None
    assert response.headers["X-RateLimit-Limit"] == "30"

    follow_ups = await api_client.get("/api/clients/follow-ups")
    assert follow_ups.json()["total"] == 0


@pytest.mark.asyncio
async def test_record_contact_unknown_client(api_client) -> None:
    """Unknown client ID returns 404."""
    response = await api_client.post("/api/clients/99999/contact")

    assert response.status_code == 404
    assert response.json() == {"error": "Client not found"}


@pytest.mark.asyncio
async def test_follow_ups_suggest_tier_from_spend(api_client, seed, ago) -> None:
    """A Silver client whose spend has grown is flagged for a Platinum review."""
    await seed(
        Client(
            name="Grown",
            tier=Tier.SILVER,
            last_contact_date=ago(45),
            lifetime_spend=Decimal("180000"),
        ),
    )

    response = await api_client.get("/api/clients/follow-ups")

    (item,) = response.json()["items"]
    assert item["tier"] == "Silver"
    assert item["suggested_tier"] == "Platinum"
