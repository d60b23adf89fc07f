"""Allocation alert endpoints: the bucketed feed and a flat list."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query

from clientele.api.deps import get_repository, rate_limit
from clientele.api.schemas import Amount, CamelModel
from clientele.core.config import settings
from clientele.core.logging import get_logger
from clientele.engine.alerts import (
    AlertCategory,
    AlertPolicy,
    AllocationAlertFeed,
    AtRiskVipAlert,
    FollowUpAlert,
    classify_alerts,
)
from clientele.engine.matcher import MatchCandidate
from clientele.engine.tiers import tier_rank
from clientele.engine.timeutil import utc_now
from clientele.ratelimit import RateLimitCategory
from clientele.repository import ClienteleRepository

logger = get_logger(__name__)

router = APIRouter(prefix="/api/alerts", tags=["alerts"])


class MatchAlertResponse(CamelModel):
    client_id: int
    client_name: str
    client_tier: int
    watch_model: str
    watch_tier: int
    days_waiting: int
    allocation_score: float


class FollowUpAlertResponse(CamelModel):
    client_id: int
    client_name: str
    tier: int
    watch_model: str | None
    days_waiting: int | None
    last_contact: datetime
    days_overdue: int


class AtRiskVipResponse(CamelModel):
    client_id: int
    client_name: str
    tier: int
    days_since_purchase: int
    lifetime_spend: Amount
    last_purchase_date: datetime


class AlertSummaryResponse(CamelModel):
    total_alerts: int
    perfect_matches: int
    good_matches: int
    needs_followup: int
    at_risk_vips: int


class AllocationAlertFeedResponse(CamelModel):
    perfect_matches: list[MatchAlertResponse]
    good_matches: list[MatchAlertResponse]
    needs_followup: list[FollowUpAlertResponse]
    at_risk_vips: list[AtRiskVipResponse]
    summary: AlertSummaryResponse


class AlertItemResponse(CamelModel):
    """One alert from any bucket; fields that do not apply are null."""

    category: AlertCategory
    client_id: int
    watch_id: int | None
    score: float | None
    days_waiting: int | None
    days_since_purchase: int | None


class AlertListResponse(CamelModel):
    items: list[AlertItemResponse]
    total: int


def _match(candidate: MatchCandidate) -> MatchAlertResponse:
    return MatchAlertResponse(
        client_id=candidate.client_id,
        client_name=candidate.client_name,
        client_tier=candidate.client_tier_rank,
        watch_model=candidate.watch_model,
        watch_tier=candidate.watch_tier,
        days_waiting=candidate.days_waiting,
        allocation_score=candidate.allocation_score,
    )


def _follow_up(alert: FollowUpAlert) -> FollowUpAlertResponse:
    return FollowUpAlertResponse(
        client_id=alert.client_id,
        client_name=alert.client_name,
        tier=tier_rank(alert.tier),
        watch_model=alert.watch_model,
        days_waiting=alert.days_waiting,
        last_contact=alert.last_contact,
        days_overdue=alert.days_overdue,
    )


def _at_risk(alert: AtRiskVipAlert) -> AtRiskVipResponse:
    return AtRiskVipResponse(
        client_id=alert.client_id,
        client_name=alert.client_name,
        tier=alert.tier.rank,
        days_since_purchase=alert.days_since_purchase,
        lifetime_spend=alert.lifetime_spend,
        last_purchase_date=alert.last_purchase_date,
    )


def to_feed_response(feed: AllocationAlertFeed) -> AllocationAlertFeedResponse:
    summary = feed.summary
    return AllocationAlertFeedResponse(
        perfect_matches=[_match(m) for m in feed.perfect_matches],
        good_matches=[_match(m) for m in feed.good_matches],
        needs_followup=[_follow_up(f) for f in feed.needs_followup],
        at_risk_vips=[_at_risk(v) for v in feed.at_risk_vips],
        summary=AlertSummaryResponse(
            total_alerts=summary.total_alerts,
            perfect_matches=summary.perfect_matches,
            good_matches=summary.good_matches,
            needs_followup=summary.needs_followup,
            at_risk_vips=summary.at_risk_vips,
        ),
    )


async def _compute_feed(repo: ClienteleRepository) -> AllocationAlertFeed:
    waitlist = await repo.fetch_active_waitlist()
    inventory = await repo.fetch_available_inventory()
    clients = await repo.fetch_clients()

    feed = classify_alerts(
        clients,
        inventory,
        waitlist,
        now=utc_now(),
        alert_policy=AlertPolicy(at_risk_days=settings.at_risk_vip_days),
    )
    summary = feed.summary
    logger.info(
        "allocation_alerts_computed",
        total=summary.total_alerts,
        perfect=summary.perfect_matches,
        good=summary.good_matches,
        needs_followup=summary.needs_followup,
        at_risk=summary.at_risk_vips,
    )
    return feed


@router.get(
    "",
    response_model=AlertListResponse,
    dependencies=[Depends(rate_limit(RateLimitCategory.READ))],
)
async def list_alerts(
    category: list[AlertCategory] | None = Query(default=None),
    repo: ClienteleRepository = Depends(get_repository),
) -> AlertListResponse:
    """Every alert as one flat list, optionally narrowed to some categories."""
    feed = await _compute_feed(repo)
    items = [
        AlertItemResponse(
            category=alert.category,
            client_id=alert.client_id,
            watch_id=alert.watch_id,
            score=alert.score,
            days_waiting=alert.days_waiting,
            days_since_purchase=alert.days_since_purchase,
        )
        for alert in feed.alerts()
        if not category or alert.category in category
    ]
    return AlertListResponse(items=items, total=len(items))


@router.get(
    "/allocation",
    response_model=AllocationAlertFeedResponse,
    dependencies=[Depends(rate_limit(RateLimitCategory.READ))],
)
async def allocation_alerts(
    repo: ClienteleRepository = Depends(get_repository),
) -> AllocationAlertFeedResponse:
    """Recompute the allocation alert feed from current records."""
    return to_feed_response(await _compute_feed(repo))
