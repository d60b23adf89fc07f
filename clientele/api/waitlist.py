"""Waitlist priority endpoint."""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from clientele.api.deps import get_repository, rate_limit
from clientele.engine.priority import rank_waitlist
from clientele.engine.tiers import Tier
from clientele.engine.timeutil import utc_now
from clientele.ratelimit import RateLimitCategory
from clientele.repository import ClientFilter, ClienteleRepository

router = APIRouter(prefix="/api/waitlist", tags=["waitlist"])


class WaitlistItemResponse(BaseModel):
    id: int
    client_id: int
    client_name: str
    client_tier: Tier | None
    desired_model: str | None
    desired_tier: int | None
    days_waiting: int
    priority_score: float


class WaitlistResponse(BaseModel):
    items: list[WaitlistItemResponse]
    total: int


@router.get(
    "",
    response_model=WaitlistResponse,
    dependencies=[Depends(rate_limit(RateLimitCategory.READ))],
)
async def list_waitlist(
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    repo: ClienteleRepository = Depends(get_repository),
) -> WaitlistResponse:
    """Active waitlist entries ranked by freshly computed priority."""
    entries = await repo.fetch_active_waitlist()
    client_ids = sorted({entry.client_id for entry in entries})
    clients = await repo.fetch_clients(ClientFilter(ids=client_ids))
    ranked = rank_waitlist(entries, {c.id: c for c in clients}, utc_now())

    return WaitlistResponse(
        items=[
            WaitlistItemResponse(
                id=scored.entry.id,
                client_id=scored.client.id,
                client_name=scored.client.name,
                client_tier=scored.client.tier,
                desired_model=scored.entry.desired_model,
                desired_tier=scored.entry.desired_tier,
                days_waiting=scored.days_waiting,
                priority_score=scored.priority_score,
            )
            for scored in ranked[offset : offset + limit]
        ],
        total=len(ranked),
    )
