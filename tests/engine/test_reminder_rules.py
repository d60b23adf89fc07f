"""Tests for reminder state changes and tier follow-up planning."""

from datetime import timedelta

import pytest

from clientele.core.errors import ValidationError
from clientele.engine.models import ReminderType
from clientele.engine.reminders import (
    ReminderUrgency,
    complete_reminder,
    edit_reminder,
    plan_tier_follow_ups,
    reminder_urgency,
    reopen_reminder,
    snooze_reminder,
)
from clientele.engine.tiers import Tier


class TestReminderUrgency:
    def test_buckets_by_calendar_day(self, now, days_ago):
        assert reminder_urgency(days_ago(1), now) is ReminderUrgency.OVERDUE
        assert reminder_urgency(now - timedelta(hours=1), now) is ReminderUrgency.TODAY
        assert reminder_urgency(now + timedelta(days=1), now) is ReminderUrgency.UPCOMING


class TestCompleteAndReopen:
    """Tests for completion toggling."""

    def test_complete_sets_timestamp(self, now, make_reminder):
        changes = complete_reminder(make_reminder(), now)
        assert changes == {"is_completed": True, "completed_at": now}

    def test_complete_twice_is_noop(self, now, days_ago, make_reminder):
        done = make_reminder(is_completed=True, completed_at=days_ago(2))
        assert complete_reminder(done, now) == {}

    def test_reopen_clears_timestamp(self, days_ago, make_reminder):
        done = make_reminder(is_completed=True, completed_at=days_ago(2))
        assert reopen_reminder(done) == {"is_completed": False, "completed_at": None}

    def test_reopen_open_reminder_is_noop(self, make_reminder):
        assert reopen_reminder(make_reminder()) == {}


class TestSnooze:
    """Tests for moving a reminder."""

    def test_snooze_moves_date(self, now, make_reminder):
        changes = snooze_reminder(make_reminder(), "2025-06-08T09:00:00Z")
        assert changes["reminder_date"] == now.replace(day=8, hour=9)

    def test_completed_cannot_be_snoozed(self, now, make_reminder):
        done = make_reminder(is_completed=True, completed_at=now)
        with pytest.raises(ValidationError):
            snooze_reminder(done, now)

    def test_invalid_date_rejected(self, make_reminder):
        with pytest.raises(ValidationError) as exc_info:
            snooze_reminder(make_reminder(), "soon")
        assert exc_info.value.field == "new_date"


class TestEditReminder:
    """Tests for plain field edits."""

    def test_edits_only_given_fields(self, make_reminder):
        changes = edit_reminder(make_reminder(), reminder_type="meeting")
        assert changes == {"reminder_type": ReminderType.MEETING}

    def test_clear_notes(self, make_reminder):
        assert edit_reminder(make_reminder(), clear_notes=True) == {"notes": None}

    def test_unknown_type_rejected(self, make_reminder):
        with pytest.raises(ValidationError):
            edit_reminder(make_reminder(), reminder_type="lunch")


class TestPlanTierFollowUps:
    """Tests for the tier follow-up generator plan."""

    def test_plans_due_clients_without_open_follow_up(self, now, days_ago, make_client):
        overdue = make_client(name="Overdue", tier=Tier.PLATINUM, last_contact_date=days_ago(20))
        fresh = make_client(name="Fresh", tier=Tier.GOLD, last_contact_date=days_ago(1))
        never = make_client(name="Never", tier=None)
        covered = make_client(name="Covered", tier=Tier.SILVER, last_contact_date=days_ago(40))

        plans = plan_tier_follow_ups([overdue, fresh, never, covered], {covered.id}, now)

        assert [p.client_id for p in plans] == [overdue.id, never.id]
        assert plans[0].reminder_date == days_ago(6)
        assert plans[1].reminder_date == now
        assert plans[0].reminder_type is ReminderType.FOLLOW_UP
        assert plans[0].notes == "Tier-based follow-up for Overdue"

    def test_nothing_due(self, now, days_ago, make_client):
        client = make_client(tier=Tier.BRONZE, last_contact_date=days_ago(3))
        assert plan_tier_follow_ups([client], set(), now) == []
