"""Client follow-up endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from clientele.api.deps import get_repository, rate_limit
from clientele.core.logging import client_id_ctx, get_logger
from clientele.engine.followup import FollowUpStatus, clients_due_for_follow_up, follow_up_status
from clientele.engine.tiers import Tier
from clientele.engine.timeutil import utc_now
from clientele.ratelimit import RateLimitCategory
from clientele.repository import ClientFilter, ClienteleRepository

logger = get_logger(__name__)

router = APIRouter(prefix="/api/clients", tags=["clients"])


class FollowUpResponse(BaseModel):
    """Follow-up position of a client."""

    client_id: int
    client_name: str
    tier: Tier | None
    last_contact_date: datetime | None
    next_follow_up_date: datetime
    days_overdue: int
    needs_follow_up: bool
    frequency_label: str
    suggested_tier: Tier


class FollowUpListResponse(BaseModel):
    items: list[FollowUpResponse]
    total: int


def _to_follow_up_response(status: FollowUpStatus) -> FollowUpResponse:
    return FollowUpResponse(
        client_id=status.client_id,
        client_name=status.client_name,
        tier=status.tier,
        last_contact_date=status.last_contact_date,
        next_follow_up_date=status.next_follow_up_date,
        days_overdue=status.days_overdue,
        needs_follow_up=status.needs_follow_up,
        frequency_label=status.frequency_label,
        suggested_tier=status.suggested_tier,
    )


@router.get(
    "/follow-ups",
    response_model=FollowUpListResponse,
    dependencies=[Depends(rate_limit(RateLimitCategory.READ))],
)
async def list_follow_ups(
    tier: list[Tier] | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=100),
    repo: ClienteleRepository = Depends(get_repository),
) -> FollowUpListResponse:
    """Clients due for contact, never-contacted first then most overdue."""
    client_filter = ClientFilter(tiers=tier, include_untiered=not tier)
    clients = await repo.fetch_clients(client_filter)
    due = clients_due_for_follow_up(clients, utc_now())
    return FollowUpListResponse(
        items=[_to_follow_up_response(status) for status in due[:limit]],
        total=len(due),
    )


@router.post(
    "/{client_id}/contact",
    response_model=FollowUpResponse,
    dependencies=[Depends(rate_limit(RateLimitCategory.WRITE))],
)
async def record_contact(
    client_id: int,
    repo: ClienteleRepository = Depends(get_repository),
) -> FollowUpResponse:
    """Record that the client was contacted now and return the new schedule."""
    client_id_ctx.set(client_id)
    now = utc_now()
    client = await repo.record_last_contact(client_id, now)
    logger.info("client_contact_recorded", tier=client.tier)
    return _to_follow_up_response(follow_up_status(client, now))
