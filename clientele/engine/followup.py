"""Tier-based follow-up scheduling.

Pure functions of (tier, last contact, now). ``now`` defaults to the current
UTC time and may be passed explicitly so that a batch of clients is judged
against a single instant.

Boundary: a client whose cadence ends exactly now is due (inclusive) and is
zero days overdue. ``days_overdue`` is always ``-days_until_follow_up``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from clientele.engine.models import ClientSnapshot
from clientele.engine.tiers import (
    Tier,
    cadence_days,
    follow_up_frequency_label,
    parse_tier,
    tier_for_lifetime_spend,
)
from clientele.engine.timeutil import add_days, ceil_days, optional_utc, to_utc, utc_now


def _resolve_now(now: datetime | None) -> datetime:
    return utc_now() if now is None else to_utc(now, field="now")


def next_follow_up_date(
    tier: Tier | str | None,
    last_contact_date: datetime | str | None,
    now: datetime | None = None,
) -> datetime:
    """When the client is next due; ``now`` for a client never contacted."""
    cadence = cadence_days(tier)
    last_contact = optional_utc(last_contact_date, field="last_contact_date")
    if last_contact is None:
        return _resolve_now(now)
    return add_days(last_contact, cadence)


def needs_follow_up(
    tier: Tier | str | None,
    last_contact_date: datetime | str | None,
    now: datetime | None = None,
) -> bool:
    """Whether the client is due for contact at ``now``.

    A client never contacted is always due. Otherwise the client is due once
    the tier cadence has fully elapsed, so exactly on the due instant counts.

    Args:
        tier: Client tier, tier name, or None for untiered.
        last_contact_date: Last contact, or None if never contacted.
        now: Evaluation instant; defaults to the current UTC time.

    Returns:
        True when a follow-up is due.

    Raises:
        ValidationError: For an unknown tier or an unreadable date.
    """
    parse_tier(tier)
    if optional_utc(last_contact_date, field="last_contact_date") is None:
        return True
    current = _resolve_now(now)
    return next_follow_up_date(tier, last_contact_date, current) <= current


def days_until_follow_up(
    tier: Tier | str | None,
    last_contact_date: datetime | str | None,
    now: datetime | None = None,
) -> int:
    """Whole days until due, rounded up; negative once overdue, 0 if never contacted."""
    parse_tier(tier)
    if optional_utc(last_contact_date, field="last_contact_date") is None:
        return 0
    current = _resolve_now(now)
    return ceil_days(next_follow_up_date(tier, last_contact_date, current) - current)


def days_overdue(
    tier: Tier | str | None,
    last_contact_date: datetime | str | None,
    now: datetime | None = None,
) -> int:
    """Whole days past due; the negation of ``days_until_follow_up``.

    Returns:
        Positive when overdue, 0 on the due day or if never contacted,
        negative while the client is still inside the cadence.
    """
    return -days_until_follow_up(tier, last_contact_date, now)


@dataclass(frozen=True)
class FollowUpStatus:
    """Follow-up position of one client at a given instant."""

    client_id: int
    client_name: str
    tier: Tier | None
    last_contact_date: datetime | None
    next_follow_up_date: datetime
    days_overdue: int
    needs_follow_up: bool
    frequency_label: str
    suggested_tier: Tier


def follow_up_status(client: ClientSnapshot, now: datetime | None = None) -> FollowUpStatus:
    """Summarize one client's schedule at ``now``.

    Args:
        client: Client snapshot.
        now: Evaluation instant; defaults to the current UTC time.

    Returns:
        FollowUpStatus including the tier the client's spend would suggest.
    """
    current = _resolve_now(now)
    return FollowUpStatus(
        client_id=client.id,
        client_name=client.name,
        tier=client.tier,
        last_contact_date=client.last_contact_date,
        next_follow_up_date=next_follow_up_date(client.tier, client.last_contact_date, current),
        days_overdue=days_overdue(client.tier, client.last_contact_date, current),
        needs_follow_up=needs_follow_up(client.tier, client.last_contact_date, current),
        frequency_label=follow_up_frequency_label(client.tier),
        suggested_tier=tier_for_lifetime_spend(client.lifetime_spend),
    )


def clients_due_for_follow_up(
    clients: Iterable[ClientSnapshot], now: datetime | None = None
) -> list[FollowUpStatus]:
    """Clients that are due, never-contacted first, then most overdue first."""
    current = _resolve_now(now)
    due = [
        status
        for status in (follow_up_status(client, current) for client in clients)
        if status.needs_follow_up
    ]
    due.sort(
        key=lambda s: (s.last_contact_date is not None, -s.days_overdue, s.client_id)
    )
    return due
