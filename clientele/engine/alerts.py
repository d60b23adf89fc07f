"""Alert classification for the allocation desk.

Four buckets, computed independently from the same snapshots:

- perfect matches and good matches, from the allocation matcher
- needs follow-up: waitlisted or not, clients past their tier cadence
- at-risk VIPs: Platinum clients with no purchase inside the threshold,
  unless they already appear under needs follow-up

Nothing here performs I/O or mutates its inputs.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

from clientele.core.errors import ValidationError
from clientele.engine.followup import days_overdue
from clientele.engine.matcher import (
    DEFAULT_MATCH_POLICY,
    MatchCandidate,
    MatchPolicy,
    find_matches,
)
from clientele.engine.models import (
    ClientSnapshot,
    InventoryItemSnapshot,
    WaitlistEntrySnapshot,
)
from clientele.engine.priority import DEFAULT_PRIORITY_WEIGHTS, PriorityWeights
from clientele.engine.tiers import DEFAULT_CADENCE_DAYS, Tier
from clientele.engine.timeutil import elapsed_days, to_utc, utc_now


class AlertCategory(str, Enum):
    PERFECT_MATCH = "PerfectMatch"
    GOOD_MATCH = "GoodMatch"
    NEEDS_FOLLOWUP = "NeedsFollowup"
    AT_RISK_VIP = "AtRiskVip"


@dataclass(frozen=True)
class AlertPolicy:
    """Thresholds for the follow-up and retention buckets."""

    at_risk_days: int = 60
    at_risk_tier: Tier = Tier.PLATINUM
    untiered_floor_days: int = DEFAULT_CADENCE_DAYS

    def __post_init__(self) -> None:
        if self.at_risk_days < 0:
            raise ValidationError("at_risk_days must be >= 0", field="at_risk_days")
        if self.untiered_floor_days < 0:
            raise ValidationError(
                "untiered_floor_days must be >= 0", field="untiered_floor_days"
            )


DEFAULT_ALERT_POLICY = AlertPolicy()


@dataclass(frozen=True)
class FollowUpAlert:
    client_id: int
    client_name: str
    tier: Tier | None
    watch_model: str | None
    days_waiting: int | None
    last_contact: datetime
    days_overdue: int


@dataclass(frozen=True)
class AtRiskVipAlert:
    client_id: int
    client_name: str
    tier: Tier
    days_since_purchase: int
    lifetime_spend: Decimal
    last_purchase_date: datetime


@dataclass(frozen=True)
class AllocationAlert:
    """Flat view of any alert, whatever its bucket."""

    category: AlertCategory
    client_id: int
    watch_id: int | None = None
    score: float | None = None
    days_waiting: int | None = None
    days_since_purchase: int | None = None


@dataclass(frozen=True)
class AlertSummary:
    total_alerts: int
    perfect_matches: int
    good_matches: int
    needs_followup: int
    at_risk_vips: int


@dataclass(frozen=True)
class AllocationAlertFeed:
    perfect_matches: list[MatchCandidate] = field(default_factory=list)
    good_matches: list[MatchCandidate] = field(default_factory=list)
    needs_followup: list[FollowUpAlert] = field(default_factory=list)
    at_risk_vips: list[AtRiskVipAlert] = field(default_factory=list)

    @property
    def summary(self) -> AlertSummary:
        counts = (
            len(self.perfect_matches),
            len(self.good_matches),
            len(self.needs_followup),
            len(self.at_risk_vips),
        )
        return AlertSummary(sum(counts), *counts)

    def alerts(self) -> list[AllocationAlert]:
        flat = [
            AllocationAlert(
                category=category,
                client_id=m.client_id,
                watch_id=m.watch_id,
                score=m.allocation_score,
                days_waiting=m.days_waiting,
            )
            for category, matches in (
                (AlertCategory.PERFECT_MATCH, self.perfect_matches),
                (AlertCategory.GOOD_MATCH, self.good_matches),
            )
            for m in matches
        ]
        flat.extend(
            AllocationAlert(
                category=AlertCategory.NEEDS_FOLLOWUP,
                client_id=f.client_id,
                days_waiting=f.days_waiting,
            )
            for f in self.needs_followup
        )
        flat.extend(
            AllocationAlert(
                category=AlertCategory.AT_RISK_VIP,
                client_id=v.client_id,
                days_since_purchase=v.days_since_purchase,
            )
            for v in self.at_risk_vips
        )
        return flat


def _longest_waits(
    waitlist: Iterable[WaitlistEntrySnapshot], now: datetime
) -> dict[int, tuple[WaitlistEntrySnapshot, int]]:
    longest: dict[int, tuple[WaitlistEntrySnapshot, int]] = {}
    for entry in waitlist:
        if not entry.is_active:
            continue
        days = entry.days_waiting(now)
        current = longest.get(entry.client_id)
        if current is None or days > current[1]:
            longest[entry.client_id] = (entry, days)
    return longest


def find_follow_ups(
    clients: Iterable[ClientSnapshot],
    waitlist: Iterable[WaitlistEntrySnapshot],
    now: datetime,
    policy: AlertPolicy = DEFAULT_ALERT_POLICY,
) -> list[FollowUpAlert]:
    """Clients more than zero days past their cadence, most overdue first.

    Clients never contacted have no overdue count and are left to the
    reminder generator. Untiered clients must also be at least
    ``policy.untiered_floor_days`` past their last contact.
    """
    waits = _longest_waits(waitlist, now)
    alerts: list[FollowUpAlert] = []
    for client in clients:
        if client.last_contact_date is None:
            continue
        overdue = days_overdue(client.tier, client.last_contact_date, now)
        if overdue <= 0:
            continue
        if (
            client.tier is None
            and elapsed_days(client.last_contact_date, now) < policy.untiered_floor_days
        ):
            continue
        entry, days = waits.get(client.id, (None, None))
        alerts.append(
            FollowUpAlert(
                client_id=client.id,
                client_name=client.name,
                tier=client.tier,
                watch_model=entry.wanted_label if entry is not None else None,
                days_waiting=days,
                last_contact=client.last_contact_date,
                days_overdue=overdue,
            )
        )

    alerts.sort(key=lambda a: (-a.days_overdue, a.client_id))
    return alerts


def find_at_risk_vips(
    clients: Iterable[ClientSnapshot],
    now: datetime,
    exclude_client_ids: set[int] | frozenset[int] = frozenset(),
    policy: AlertPolicy = DEFAULT_ALERT_POLICY,
) -> list[AtRiskVipAlert]:
    """Top-tier clients without a recent purchase, biggest spenders first."""
    alerts = [
        AtRiskVipAlert(
            client_id=client.id,
            client_name=client.name,
            tier=client.tier,
            days_since_purchase=elapsed_days(client.last_purchase_date, now),
            lifetime_spend=client.lifetime_spend,
            last_purchase_date=client.last_purchase_date,
        )
        for client in clients
        if client.tier is policy.at_risk_tier
        and client.last_purchase_date is not None
        and client.id not in exclude_client_ids
        and elapsed_days(client.last_purchase_date, now) > policy.at_risk_days
    ]
    alerts.sort(key=lambda a: (-a.lifetime_spend, a.client_id))
    return alerts


def classify_alerts(
    clients: Iterable[ClientSnapshot],
    inventory: Iterable[InventoryItemSnapshot],
    waitlist: Iterable[WaitlistEntrySnapshot],
    now: datetime | None = None,
    weights: PriorityWeights = DEFAULT_PRIORITY_WEIGHTS,
    match_policy: MatchPolicy = DEFAULT_MATCH_POLICY,
    alert_policy: AlertPolicy = DEFAULT_ALERT_POLICY,
) -> AllocationAlertFeed:
    """Build the full alert feed from one consistent set of snapshots."""
    current = utc_now() if now is None else to_utc(now, field="now")
    client_list = list(clients)
    waitlist_list = list(waitlist)
    clients_by_id = {client.id: client for client in client_list}

    matches = find_matches(
        waitlist_list, inventory, clients_by_id, current, weights, match_policy
    )
    follow_ups = find_follow_ups(client_list, waitlist_list, current, alert_policy)
    at_risk = find_at_risk_vips(
        client_list,
        current,
        exclude_client_ids={f.client_id for f in follow_ups},
        policy=alert_policy,
    )
    return AllocationAlertFeed(
        perfect_matches=matches.perfect,
        good_matches=matches.good,
        needs_followup=follow_ups,
        at_risk_vips=at_risk,
    )
