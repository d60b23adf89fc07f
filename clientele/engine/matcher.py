"""Allocation matching between active waitlist entries and available inventory.

Every eligible (entry, item) pair is scored. The matcher only ranks
candidates. Choosing who actually receives a piece, and decrementing
inventory, happens outside this module.

Score for a pair::

    base(tier_delta) + priority_weight * priority_score, clamped to [0, 100]

where ``tier_delta = |client tier rank - watch tier rank|`` and the base
falls as the tiers drift apart.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from clientele.core.errors import ValidationError
from clientele.core.logging import get_logger
from clientele.engine.models import (
    ClientSnapshot,
    InventoryItemSnapshot,
    WaitlistEntrySnapshot,
)
from clientele.engine.priority import (
    DEFAULT_PRIORITY_WEIGHTS,
    PriorityWeights,
    ScoredEntry,
    clamp_score,
    rank_waitlist,
)
from clientele.engine.tiers import Tier

logger = get_logger(__name__)


class MatchClass(str, Enum):
    PERFECT = "perfect"
    GOOD = "good"


@dataclass(frozen=True)
class MatchPolicy:
    """Thresholds for scoring and classifying a pair.

    ``delta_base[d]`` is the base score at tier delta ``d``; deltas past the
    end of the tuple score a base of 0.
    """

    delta_base: tuple[float, ...] = (85.0, 65.0, 40.0, 15.0)
    priority_weight: float = 0.15
    perfect_min_score: float = 90.0
    good_min_score: float = 70.0
    good_max_tier_delta: int = 1

    def __post_init__(self) -> None:
        if any(b < 0 for b in self.delta_base):
            raise ValidationError("delta_base values must be >= 0", field="delta_base")
        if list(self.delta_base) != sorted(self.delta_base, reverse=True):
            raise ValidationError(
                "delta_base must not increase with tier delta", field="delta_base"
            )
        if self.priority_weight < 0:
            raise ValidationError("priority_weight must be >= 0", field="priority_weight")
        if self.good_max_tier_delta < 0:
            raise ValidationError(
                "good_max_tier_delta must be >= 0", field="good_max_tier_delta"
            )

    def base_for(self, tier_delta: int) -> float:
        if tier_delta < len(self.delta_base):
            return self.delta_base[tier_delta]
        return 0.0


DEFAULT_MATCH_POLICY = MatchPolicy()


def allocation_score(
    tier_delta: int,
    priority_score: float,
    policy: MatchPolicy = DEFAULT_MATCH_POLICY,
) -> float:
    """Score a client/watch pairing from 0 to 100.

    The base falls as the tier gap widens; a share of the entry's priority
    is added on top and the result clamped.

    Args:
        tier_delta: Absolute rank gap between client and watch tiers.
        priority_score: Waitlist priority, 0-100.
        policy: Bases per tier gap and the priority share.

    Returns:
        Score rounded to two decimals.

    Raises:
        ValidationError: If tier_delta is negative.
    """
    if tier_delta < 0:
        raise ValidationError("tier_delta must be >= 0", field="tier_delta")
    score = policy.base_for(tier_delta) + policy.priority_weight * priority_score
    return round(clamp_score(score), 2)


def classify_match(
    tier_delta: int,
    score: float,
    policy: MatchPolicy = DEFAULT_MATCH_POLICY,
) -> MatchClass | None:
    """Perfect beats good; pairs outside both bands are not surfaced."""
    if tier_delta == 0 and score >= policy.perfect_min_score:
        return MatchClass.PERFECT
    if tier_delta <= policy.good_max_tier_delta and score >= policy.good_min_score:
        return MatchClass.GOOD
    return None


@dataclass(frozen=True)
class MatchCandidate:
    """One scored (waitlist entry, inventory item) pair."""

    entry_id: int
    client_id: int
    client_name: str
    client_tier: Tier | None
    client_tier_rank: int
    watch_id: int
    watch_model: str
    watch_tier: int
    tier_delta: int
    days_waiting: int
    priority_score: float
    allocation_score: float
    match_class: MatchClass | None


def _candidate(
    scored: ScoredEntry, item: InventoryItemSnapshot, policy: MatchPolicy
) -> MatchCandidate:
    client = scored.client
    delta = abs(client.tier_rank - item.tier)
    score = allocation_score(delta, scored.priority_score, policy)
    return MatchCandidate(
        entry_id=scored.entry.id,
        client_id=client.id,
        client_name=client.name,
        client_tier=client.tier,
        client_tier_rank=client.tier_rank,
        watch_id=item.id,
        watch_model=item.display_name,
        watch_tier=item.tier,
        tier_delta=delta,
        days_waiting=scored.days_waiting,
        priority_score=scored.priority_score,
        allocation_score=score,
        match_class=classify_match(delta, score, policy),
    )


def score_candidates(
    waitlist: Iterable[WaitlistEntrySnapshot],
    inventory: Iterable[InventoryItemSnapshot],
    clients_by_id: Mapping[int, ClientSnapshot],
    now: datetime,
    weights: PriorityWeights = DEFAULT_PRIORITY_WEIGHTS,
    policy: MatchPolicy = DEFAULT_MATCH_POLICY,
) -> list[MatchCandidate]:
    """Score every eligible pair, best allocation score first.

    Inactive entries, entries with an unknown client, and items with no
    available quantity take no part.
    """
    available = [item for item in inventory if item.is_available]
    ranked = rank_waitlist(waitlist, clients_by_id, now, weights)

    candidates = [
        _candidate(scored, item, policy)
        for scored in ranked
        for item in available
        if scored.entry.accepts(item)
    ]
    candidates.sort(
        key=lambda c: (-c.allocation_score, -c.days_waiting, c.entry_id, c.watch_id)
    )
    logger.debug(
        "allocation_candidates_scored",
        entries=len(ranked),
        items=len(available),
        candidates=len(candidates),
    )
    return candidates


@dataclass(frozen=True)
class MatchResult:
    perfect: list[MatchCandidate]
    good: list[MatchCandidate]


def find_matches(
    waitlist: Iterable[WaitlistEntrySnapshot],
    inventory: Iterable[InventoryItemSnapshot],
    clients_by_id: Mapping[int, ClientSnapshot],
    now: datetime,
    weights: PriorityWeights = DEFAULT_PRIORITY_WEIGHTS,
    policy: MatchPolicy = DEFAULT_MATCH_POLICY,
) -> MatchResult:
    candidates = score_candidates(waitlist, inventory, clients_by_id, now, weights, policy)
    return MatchResult(
        perfect=[c for c in candidates if c.match_class is MatchClass.PERFECT],
        good=[c for c in candidates if c.match_class is MatchClass.GOOD],
    )
