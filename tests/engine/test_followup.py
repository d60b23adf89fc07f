"""Tests for tier-based follow-up scheduling."""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from clientele.core.errors import ValidationError
from clientele.engine.followup import (
    clients_due_for_follow_up,
    days_overdue,
    days_until_follow_up,
    follow_up_status,
    needs_follow_up,
    next_follow_up_date,
)
from clientele.engine.tiers import Tier


class TestNextFollowUpDate:
    """Tests for the next due date."""

    def test_adds_tier_cadence(self, now, days_ago):
        last = days_ago(3)
        assert next_follow_up_date(Tier.GOLD, last, now) == last + timedelta(days=21)

    def test_never_contacted_is_due_now(self, now):
        assert next_follow_up_date(Tier.PLATINUM, None, now) == now

    def test_naive_timestamps_read_as_utc(self, now):
        naive = datetime(2025, 5, 1, 12, 0)
        assert next_follow_up_date(Tier.PLATINUM, naive, now) == datetime(
            2025, 5, 15, 12, 0, tzinfo=now.tzinfo
        )

    def test_iso_string_accepted(self, now):
        due = next_follow_up_date("Silver", "2025-05-01T12:00:00Z", now)
        assert due.isoformat() == "2025-05-31T12:00:00+00:00"


class TestNeedsFollowUp:
    """Tests for the due check and its boundary."""

    def test_due_exactly_at_cadence(self, now, days_ago):
        last = days_ago(14)
        assert needs_follow_up(Tier.PLATINUM, last, now) is True
        assert days_until_follow_up(Tier.PLATINUM, last, now) == 0
        assert days_overdue(Tier.PLATINUM, last, now) == 0

    def test_not_due_inside_cadence(self, now, days_ago):
        last = days_ago(10)
        assert needs_follow_up(Tier.PLATINUM, last, now) is False
        assert days_until_follow_up(Tier.PLATINUM, last, now) == 4
        assert days_overdue(Tier.PLATINUM, last, now) == -4

    def test_overdue_counts_whole_days(self, now, days_ago):
        assert days_overdue(Tier.PLATINUM, days_ago(20), now) == 6

    def test_partial_day_rounds_up(self, now, days_ago):
        assert days_until_follow_up(Tier.PLATINUM, days_ago(13.5), now) == 1

    @pytest.mark.parametrize("tier", [*Tier, None])
    def test_never_contacted(self, now, tier):
        assert needs_follow_up(tier, None, now) is True
        assert days_until_follow_up(tier, None, now) == 0

    def test_untiered_uses_default_cadence(self, now, days_ago):
        assert needs_follow_up(None, days_ago(89), now) is False
        assert needs_follow_up(None, days_ago(90), now) is True

    @pytest.mark.parametrize("days", [0, 7, 14, 21, 45, 200])
    def test_overdue_is_negated_days_until(self, now, days_ago, days):
        last = days_ago(days)
        for tier in (*Tier, None):
            assert days_overdue(tier, last, now) == -days_until_follow_up(tier, last, now)

    def test_invalid_tier_rejected(self, now):
        with pytest.raises(ValidationError):
            needs_follow_up("Diamond", None, now)

    def test_invalid_date_rejected(self, now):
        with pytest.raises(ValidationError) as exc_info:
            days_until_follow_up(Tier.GOLD, "last tuesday", now)
        assert exc_info.value.field == "last_contact_date"


class TestClientsDueForFollowUp:
    """Tests for the batch follow-up list."""

    def test_orders_never_contacted_then_most_overdue(self, now, days_ago, make_client):
        recent = make_client(name="Recent", tier=Tier.PLATINUM, last_contact_date=days_ago(2))
        slightly = make_client(name="Slightly", tier=Tier.PLATINUM, last_contact_date=days_ago(16))
        very = make_client(name="Very", tier=Tier.GOLD, last_contact_date=days_ago(60))
        never = make_client(name="Never", tier=Tier.SILVER)

        due = clients_due_for_follow_up([recent, slightly, very, never], now)

        assert [s.client_name for s in due] == ["Never", "Very", "Slightly"]
        assert due[1].days_overdue == 39

    def test_status_carries_label(self, now, days_ago, make_client):
        client = make_client(tier=Tier.BRONZE, last_contact_date=days_ago(1))
        status = follow_up_status(client, now)
        assert status.frequency_label == "Every 2 months"
        assert status.needs_follow_up is False
        assert status.days_overdue == -59

    @pytest.mark.parametrize(
        ("spend", "suggested"),
        [
            ("0", Tier.BRONZE),
            ("25000", Tier.SILVER),
            ("99999.99", Tier.GOLD),
            ("100000", Tier.PLATINUM),
        ],
    )
    def test_status_suggests_tier_from_spend(self, now, make_client, spend, suggested):
        client = make_client(tier=Tier.BRONZE, lifetime_spend=Decimal(spend))
        assert follow_up_status(client, now).suggested_tier is suggested
