"""Tests for reminder endpoints."""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from clientele.engine.models import ReminderType
from clientele.engine.tiers import Tier
from clientele.models import Client, Reminder


@pytest_asyncio.fixture
async def reminder(seed, ago) -> Reminder:
    """An open call-back reminder that was due yesterday."""
    (client,) = await seed(Client(name="Ava", tier=Tier.PLATINUM, last_contact_date=ago(1)))
    (created,) = await seed(
        Reminder(
            client_id=client.id,
            reminder_date=ago(1),
            reminder_type=ReminderType.CALL_BACK,
            notes="Ask about the Daytona",
        )
    )
    return created


class TestUpdateReminder:
    """Tests for PATCH /api/reminders/{id}."""

    @pytest.mark.asyncio
    async def test_complete_then_complete_again(self, api_client, reminder) -> None:
        first = await api_client.patch(
            f"/api/reminders/{reminder.id}", json={"action": "complete"}
        )
        assert first.status_code == 200
        assert first.json()["is_completed"] is True
        completed_at = first.json()["completed_at"]
        assert completed_at is not None

        second = await api_client.patch(
            f"/api/reminders/{reminder.id}", json={"action": "complete"}
        )
        assert second.json()["completed_at"] == completed_at

    @pytest.mark.asyncio
    async def test_reopen_clears_completion(self, api_client, reminder) -> None:
        await api_client.patch(f"/api/reminders/{reminder.id}", json={"action": "complete"})

        response = await api_client.patch(
            f"/api/reminders/{reminder.id}", json={"action": "reopen"}
        )

        assert response.status_code == 200
        assert response.json()["is_completed"] is False
        assert response.json()["completed_at"] is None

    @pytest.mark.asyncio
    async def test_snooze_moves_date(self, api_client, reminder) -> None:
        new_date = datetime.now(timezone.utc) + timedelta(days=7)

        response = await api_client.patch(
            f"/api/reminders/{reminder.id}",
            json={"action": "snooze", "new_date": new_date.isoformat()},
        )

        assert response.status_code == 200
        assert response.json()["urgency"] == "upcoming"

    @pytest.mark.asyncio
    async def test_snooze_requires_new_date(self, api_client, reminder) -> None:
        response = await api_client.patch(
            f"/api/reminders/{reminder.id}", json={"action": "snooze"}
        )

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "new_date"

    @pytest.mark.asyncio
    async def test_completed_cannot_be_snoozed(self, api_client, reminder) -> None:
        await api_client.patch(f"/api/reminders/{reminder.id}", json={"action": "complete"})

        response = await api_client.patch(
            f"/api/reminders/{reminder.id}",
            json={"action": "snooze", "new_date": "2030-01-01T00:00:00Z"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request data"

    @pytest.mark.asyncio
    async def test_field_edit(self, api_client, reminder) -> None:
        response = await api_client.patch(
            f"/api/reminders/{reminder.id}",
            json={"reminder_type": "meeting", "notes": None},
        )

        assert response.status_code == 200
        payload = response.json()
        assert payload["reminder_type"] == "meeting"
        assert payload["notes"] is None
        assert payload["urgency"] == "overdue"

    @pytest.mark.asyncio
    async def test_unknown_reminder(self, api_client) -> None:
        response = await api_client.patch("/api/reminders/424242", json={"action": "complete"})

        assert response.status_code == 404
        assert response.json() == {"error": "Reminder not found"}


class TestDeleteReminder:
    """Tests for DELETE /api/reminders/{id}."""

    @pytest.mark.asyncio
    async def test_delete(self, api_client, reminder) -> None:
        response = await api_client.delete(f"/api/reminders/{reminder.id}")
        assert response.status_code == 204

        again = await api_client.delete(f"/api/reminders/{reminder.id}")
        assert again.status_code == 404


class TestGenerateTierFollowUps:
    """Tests for POST /api/reminders/generate-tier-followups."""

    @pytest.mark.asyncio
    async def test_creates_one_per_due_client(self, api_client, seed, ago) -> None:
        overdue, _, never, covered = await seed(
            Client(name="Overdue", tier=Tier.PLATINUM, last_contact_date=ago(20)),
            Client(name="Fresh", tier=Tier.GOLD, last_contact_date=ago(1)),
            Client(name="Never", tier=None),
            Client(name="Covered", tier=Tier.SILVER, last_contact_date=ago(40)),
        )
        await seed(
            Reminder(
                client_id=covered.id,
                reminder_date=ago(0),
                reminder_type=ReminderType.FOLLOW_UP,
            )
        )

        response = await api_client.post("/api/reminders/generate-tier-followups")

        assert response.status_code == 200
        payload = response.json()
        assert payload["created"] == 2
        assert payload["total_clients"] == 4
        assert payload["clients_needing_followup"] == 3
        assert payload["message"] == "Successfully created 2 tier-based follow-up reminders"
        assert sorted(r["client_id"] for r in payload["reminders"]) == sorted(
            [overdue.id, never.id]
        )
        assert all(r["reminder_type"] == "follow-up" for r in payload["reminders"])

        rerun = await api_client.post("/api/reminders/generate-tier-followups")
        assert rerun.json()["created"] == 0
        assert rerun.json()["message"] == "All clients already have active follow-up reminders"

    @pytest.mark.asyncio
    async def test_no_clients(self, api_client) -> None:
        response = await api_client.post("/api/reminders/generate-tier-followups")

        assert response.json()["message"] == "No clients found"
        assert response.json()["created"] == 0
