"""Static tier cadence configuration endpoint."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from clientele.api.deps import rate_limit
from clientele.engine.tiers import (
    DEFAULT_CADENCE_DAYS,
    Tier,
    cadence_days,
    follow_up_frequency_label,
)
from clientele.ratelimit import RateLimitCategory

router = APIRouter(prefix="/api/tiers", tags=["tiers"])


class CadenceEntry(BaseModel):
    tier: str | None
    rank: int | None
    days: int
    label: str


class CadenceTableResponse(BaseModel):
    tiers: list[CadenceEntry]
    default_days: int


@router.get(
    "/cadence",
    response_model=CadenceTableResponse,
    dependencies=[Depends(rate_limit(RateLimitCategory.READ))],
)
async def get_cadence_table() -> CadenceTableResponse:
    """Follow-up interval per tier, plus the default for untiered clients."""
    entries = [
        CadenceEntry(
            tier=tier.value,
            rank=tier.rank,
            days=cadence_days(tier),
            label=follow_up_frequency_label(tier),
        )
        for tier in Tier
    ]
    entries.append(
        CadenceEntry(
            tier=None,
            rank=None,
            days=DEFAULT_CADENCE_DAYS,
            label=follow_up_frequency_label(None),
        )
    )
    return CadenceTableResponse(tiers=entries, default_days=DEFAULT_CADENCE_DAYS)
