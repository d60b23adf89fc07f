"""Client tiers, their total order, and the follow-up cadence table.

Platinum ranks 1 and Bronze ranks 4. A client without a tier ranks below
every named tier. Ordering always goes through ``tier_rank``; tier names are
never compared as strings.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from clientele.core.errors import ValidationError


class Tier(str, Enum):
    """Client tier, from most to least valuable."""

    PLATINUM = "Platinum"
    GOLD = "Gold"
    SILVER = "Silver"
    BRONZE = "Bronze"

    @property
    def rank(self) -> int:
        return _TIER_RANKS[self]


_TIER_RANKS: Mapping[Tier, int] = MappingProxyType(
    {Tier.PLATINUM: 1, Tier.GOLD: 2, Tier.SILVER: 3, Tier.BRONZE: 4}
)

UNTIERED_RANK = 5
"""Rank of a client with no tier; lower than Bronze."""

MIN_WATCH_TIER = 1
MAX_WATCH_TIER = 4

# Follow-up cadence in days
TIER_CADENCE_DAYS: Mapping[Tier, int] = MappingProxyType(
    {Tier.PLATINUM: 14, Tier.GOLD: 21, Tier.SILVER: 30, Tier.BRONZE: 60}
)
DEFAULT_CADENCE_DAYS = 90

# Lifetime spend floors (USD) used to suggest a tier
TIER_SPEND_FLOORS: tuple[tuple[Tier, Decimal], ...] = (
    (Tier.PLATINUM, Decimal("100000")),
    (Tier.GOLD, Decimal("50000")),
    (Tier.SILVER, Decimal("25000")),
)

_FREQUENCY_LABELS: Mapping[int, str] = MappingProxyType(
    {
        14: "Every 2 weeks",
        21: "Every 3 weeks",
        30: "Every month",
        60: "Every 2 months",
        90: "Every 3 months",
    }
)


def parse_tier(value: object) -> Tier | None:
    """Read a tier from an enum member, a case-insensitive name, or None.

    Raises:
        ValidationError: For any other value.
    """
    if value is None or isinstance(value, Tier):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        for tier in Tier:
            if tier.value.lower() == text.lower():
                return tier
    raise ValidationError(f"Unknown tier: {value!r}", field="tier", value=value)


def tier_rank(tier: Tier | str | None) -> int:
    """Return 1 (Platinum) through 4 (Bronze), or UNTIERED_RANK without a tier."""
    parsed = parse_tier(tier)
    if parsed is None:
        return UNTIERED_RANK
    return parsed.rank


def validate_watch_tier(value: object) -> int:
    """Check an inventory tier is an integer rank between 1 and 4."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(
            f"Watch tier must be an integer, got {value!r}", field="tier", value=value
        )
    if not MIN_WATCH_TIER <= value <= MAX_WATCH_TIER:
        raise ValidationError(
            f"Watch tier must be between {MIN_WATCH_TIER} and {MAX_WATCH_TIER}, got {value}",
            field="tier",
            value=value,
        )
    return value


def cadence_days(tier: Tier | str | None) -> int:
    """Follow-up interval in days for a tier; 90 when the client has no tier."""
    parsed = parse_tier(tier)
    if parsed is None:
        return DEFAULT_CADENCE_DAYS
    return TIER_CADENCE_DAYS[parsed]


def cadence_table() -> dict[str, int]:
    """Static tier name -> cadence days mapping, with ``default`` for untiered clients."""
    table = {tier.value: days for tier, days in TIER_CADENCE_DAYS.items()}
    table["default"] = DEFAULT_CADENCE_DAYS
    return table


def follow_up_frequency_label(tier: Tier | str | None) -> str:
    """Human-readable cadence, e.g. ``"Every 2 weeks"`` for Platinum."""
    days = cadence_days(tier)
    return _FREQUENCY_LABELS.get(days, f"Every {days} days")


def tier_for_lifetime_spend(lifetime_spend: Decimal | int | float | str) -> Tier:
    """Suggest a tier from lifetime spend.

    Raises:
        ValidationError: If the amount is negative or not a number.
    """
    try:
        amount = Decimal(str(lifetime_spend))
    except InvalidOperation as exc:
        raise ValidationError(
            f"Invalid lifetime spend: {lifetime_spend!r}",
            field="lifetime_spend",
            value=lifetime_spend,
        ) from exc
    if not amount.is_finite() or amount < 0:
        raise ValidationError(
            "Lifetime spend must be a non-negative amount",
            field="lifetime_spend",
            value=lifetime_spend,
        )

    for tier, floor in TIER_SPEND_FLOORS:
        if amount >= floor:
            return tier
    return Tier.BRONZE
