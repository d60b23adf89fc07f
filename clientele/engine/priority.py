"""Waitlist priority scoring.

A waitlist entry's priority is a weighted blend, each part normalized to
0-100 before weighting:

- tier: points for the client's tier (Platinum 100 down to no tier 0)
- wait: days waiting, saturating at ``wait_saturation_days``
- spend: lifetime spend, saturating at ``spend_ceiling``

Weights are provisional business defaults and are passed in as a
``PriorityWeights`` value. Scores are recomputed on every call and never
cached.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from types import MappingProxyType

from clientele.core.errors import ValidationError
from clientele.core.logging import get_logger
from clientele.engine.models import ClientSnapshot, WaitlistEntrySnapshot
from clientele.engine.tiers import Tier, parse_tier

logger = get_logger(__name__)

MIN_SCORE = 0.0
MAX_SCORE = 100.0

TIER_POINTS: Mapping[Tier | None, float] = MappingProxyType(
    {
        Tier.PLATINUM: 100.0,
        Tier.GOLD: 75.0,
        Tier.SILVER: 50.0,
        Tier.BRONZE: 25.0,
        None: 0.0,
    }
)


@dataclass(frozen=True)
class PriorityWeights:
    """Weights and saturation points for waitlist priority."""

    tier: float = 0.4
    wait: float = 0.3
    spend: float = 0.3
    wait_saturation_days: int = 365
    spend_ceiling: Decimal = field(default_factory=lambda: Decimal("500000"))

    def __post_init__(self) -> None:
        for name in ("tier", "wait", "spend"):
            if getattr(self, name) < 0:
                raise ValidationError(f"Priority weight '{name}' must be >= 0", field=name)
        if self.tier + self.wait + self.spend <= 0:
            raise ValidationError("At least one priority weight must be positive")
        if self.wait_saturation_days < 1:
            raise ValidationError(
                "wait_saturation_days must be positive", field="wait_saturation_days"
            )
        if self.spend_ceiling <= 0:
            raise ValidationError("spend_ceiling must be positive", field="spend_ceiling")


DEFAULT_PRIORITY_WEIGHTS = PriorityWeights()


def clamp_score(value: float) -> float:
    return max(MIN_SCORE, min(MAX_SCORE, value))


def priority_score(
    tier: Tier | str | None,
    days_waiting: int,
    lifetime_spend: Decimal | int | float,
    weights: PriorityWeights = DEFAULT_PRIORITY_WEIGHTS,
) -> float:
    """Score in [0, 100], rounded to two decimals.

    Raises:
        ValidationError: If days_waiting or lifetime_spend is negative.
    """
    lifetime_spend = Decimal(str(lifetime_spend))
    if days_waiting < 0:
        raise ValidationError("days_waiting must be >= 0", field="days_waiting")
    if not lifetime_spend.is_finite() or lifetime_spend < 0:
        raise ValidationError("lifetime_spend must be >= 0", field="lifetime_spend")

    tier_part = TIER_POINTS[parse_tier(tier)]
    wait_part = min(days_waiting / weights.wait_saturation_days, 1.0) * 100.0
    spend_part = float(min(lifetime_spend / weights.spend_ceiling, Decimal(1))) * 100.0

    total_weight = weights.tier + weights.wait + weights.spend
    score = (
        tier_part * weights.tier + wait_part * weights.wait + spend_part * weights.spend
    ) / total_weight
    return round(clamp_score(score), 2)


@dataclass(frozen=True)
class ScoredEntry:
    """A waitlist entry with its client and freshly computed priority."""

    entry: WaitlistEntrySnapshot
    client: ClientSnapshot
    days_waiting: int
    priority_score: float


def score_entry(
    entry: WaitlistEntrySnapshot,
    client: ClientSnapshot,
    now: datetime,
    weights: PriorityWeights = DEFAULT_PRIORITY_WEIGHTS,
) -> ScoredEntry:
    days = entry.days_waiting(now)
    return ScoredEntry(
        entry=entry,
        client=client,
        days_waiting=days,
        priority_score=priority_score(client.tier, days, client.lifetime_spend, weights),
    )


def rank_waitlist(
    entries: Iterable[WaitlistEntrySnapshot],
    clients_by_id: Mapping[int, ClientSnapshot],
    now: datetime,
    weights: PriorityWeights = DEFAULT_PRIORITY_WEIGHTS,
) -> list[ScoredEntry]:
    """Score active entries, highest priority first.

    Inactive entries and entries whose client is missing from the snapshot
    are skipped rather than failing the batch.
    """
    scored: list[ScoredEntry] = []
    for entry in entries:
        if not entry.is_active:
            continue
        client = clients_by_id.get(entry.client_id)
        if client is None:
            logger.warning(
                "waitlist_entry_skipped",
                reason="client_not_found",
                entry_id=entry.id,
                missing_client_id=entry.client_id,
            )
            continue
        scored.append(score_entry(entry, client, now, weights))

    scored.sort(key=lambda s: (-s.priority_score, -s.days_waiting, s.entry.id))
    return scored
