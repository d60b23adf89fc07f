"""Pytest configuration and shared fixtures for tests."""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any

import pytest

from clientele.engine.models import (
    ClientSnapshot,
    InventoryItemSnapshot,
    ReminderSnapshot,
    WaitlistEntrySnapshot,
)

FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio backend for async tests.

    Returns:
        Backend name string.
    """
    return "asyncio"


@pytest.fixture
def now() -> datetime:
    """A fixed evaluation instant so day counts are deterministic."""
    return FIXED_NOW


@pytest.fixture
def days_ago() -> Callable[[float], datetime]:
    """Return a helper giving the instant ``days`` before the fixed now."""

    def helper(days: float) -> datetime:
        return FIXED_NOW - timedelta(days=days)

    return helper


@pytest.fixture
def make_client() -> Callable[..., ClientSnapshot]:
    """Build client snapshots with sensible defaults."""
    counter = iter(range(1, 10_000))

    def factory(**overrides: Any) -> ClientSnapshot:
        data: dict[str, Any] = {
            "id": next(counter),
            "name": "Test Client",
            "tier": None,
            "last_contact_date": None,
            "last_purchase_date": None,
            "lifetime_spend": Decimal("0"),
        }
        data.update(overrides)
        return ClientSnapshot(**data)

    return factory


@pytest.fixture
def make_entry() -> Callable[..., WaitlistEntrySnapshot]:
    """Build waitlist entry snapshots."""
    counter = iter(range(100, 10_000))

    def factory(client_id: int, **overrides: Any) -> WaitlistEntrySnapshot:
        data: dict[str, Any] = {
            "id": next(counter),
            "client_id": client_id,
            "desired_model": None,
            "desired_tier": None,
            "wait_start_date": FIXED_NOW,
            "is_active": True,
        }
        data.update(overrides)
        return WaitlistEntrySnapshot(**data)

    return factory


@pytest.fixture
def make_item() -> Callable[..., InventoryItemSnapshot]:
    """Build inventory item snapshots."""
    counter = iter(range(500, 10_000))

    def factory(**overrides: Any) -> InventoryItemSnapshot:
        data: dict[str, Any] = {
            "id": next(counter),
            "model": "Daytona",
            "brand": "Rolex",
            "tier": 1,
            "available_quantity": 1,
        }
        data.update(overrides)
        return InventoryItemSnapshot(**data)

    return factory


@pytest.fixture
def make_reminder() -> Callable[..., ReminderSnapshot]:
    """Build reminder snapshots."""

    def factory(**overrides: Any) -> ReminderSnapshot:
        data: dict[str, Any] = {
            "id": 1,
            "client_id": 1,
            "reminder_date": FIXED_NOW,
            "notes": "Call about the Daytona",
        }
        data.update(overrides)
        return ReminderSnapshot(**data)

    return factory
