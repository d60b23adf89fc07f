"""Scoring, scheduling and classification over read-only snapshots."""

from clientele.engine.alerts import (
    AlertCategory,
    AlertPolicy,
    AllocationAlert,
    AllocationAlertFeed,
    classify_alerts,
)
from clientele.engine.followup import (
    days_overdue,
    days_until_follow_up,
    needs_follow_up,
    next_follow_up_date,
)
from clientele.engine.matcher import MatchCandidate, MatchClass, MatchPolicy, find_matches
from clientele.engine.models import (
    ClientSnapshot,
    InventoryItemSnapshot,
    ReminderSnapshot,
    ReminderType,
    WaitlistEntrySnapshot,
)
from clientele.engine.priority import PriorityWeights, priority_score, rank_waitlist
from clientele.engine.tiers import Tier, cadence_days, cadence_table, tier_rank

__all__ = [
    "AlertCategory",
    "AlertPolicy",
    "AllocationAlert",
    "AllocationAlertFeed",
    "ClientSnapshot",
    "InventoryItemSnapshot",
    "MatchCandidate",
    "MatchClass",
    "MatchPolicy",
    "PriorityWeights",
    "ReminderSnapshot",
    "ReminderType",
    "Tier",
    "WaitlistEntrySnapshot",
    "cadence_days",
    "cadence_table",
    "classify_alerts",
    "days_overdue",
    "days_until_follow_up",
    "find_matches",
    "needs_follow_up",
    "next_follow_up_date",
    "priority_score",
    "rank_waitlist",
    "tier_rank",
]
