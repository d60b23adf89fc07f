"""Reminder state changes and tier-based follow-up planning.

Functions here return the field changes to apply; writing them is left to
the persistence collaborator.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from clientele.core.errors import ValidationError
from clientele.engine.followup import needs_follow_up, next_follow_up_date
from clientele.engine.models import ClientSnapshot, ReminderSnapshot, ReminderType
from clientele.engine.timeutil import to_utc, utc_now


class ReminderUrgency(str, Enum):
    OVERDUE = "overdue"
    TODAY = "today"
    UPCOMING = "upcoming"


def reminder_urgency(reminder_date: datetime, now: datetime | None = None) -> ReminderUrgency:
    """Compare UTC calendar days of the reminder and ``now``."""
    reminder_day = to_utc(reminder_date, field="reminder_date").date()
    today = (utc_now() if now is None else to_utc(now, field="now")).date()
    if reminder_day < today:
        return ReminderUrgency.OVERDUE
    if reminder_day == today:
        return ReminderUrgency.TODAY
    return ReminderUrgency.UPCOMING


def complete_reminder(reminder: ReminderSnapshot, now: datetime | None = None) -> dict[str, Any]:
    """Mark complete; completing twice keeps the original completion time."""
    if reminder.is_completed:
        return {}
    completed_at = utc_now() if now is None else to_utc(now, field="now")
    return {"is_completed": True, "completed_at": completed_at}


def reopen_reminder(reminder: ReminderSnapshot) -> dict[str, Any]:
    if not reminder.is_completed:
        return {}
    return {"is_completed": False, "completed_at": None}


def snooze_reminder(reminder: ReminderSnapshot, new_date: datetime | str) -> dict[str, Any]:
    """Move an open reminder to ``new_date``.

    Raises:
        ValidationError: If the reminder is already completed.
    """
    if reminder.is_completed:
        raise ValidationError(
            "Completed reminders cannot be snoozed", field="action", value="snooze"
        )
    return {"reminder_date": to_utc(new_date, field="new_date")}


def edit_reminder(
    reminder: ReminderSnapshot,
    *,
    reminder_date: datetime | str | None = None,
    reminder_type: ReminderType | str | None = None,
    notes: str | None = None,
    clear_notes: bool = False,
) -> dict[str, Any]:
    """Field edits that leave completion state untouched."""
    changes: dict[str, Any] = {}
    if reminder_date is not None:
        changes["reminder_date"] = to_utc(reminder_date, field="reminder_date")
    if reminder_type is not None:
        try:
            changes["reminder_type"] = ReminderType(reminder_type)
        except ValueError as exc:
            raise ValidationError(
                f"Unknown reminder type: {reminder_type!r}",
                field="reminder_type",
                value=reminder_type,
            ) from exc
    if notes is not None or clear_notes:
        changes["notes"] = notes
    return changes


@dataclass(frozen=True)
class ReminderPlan:
    """A reminder to be created."""

    client_id: int
    reminder_date: datetime
    reminder_type: ReminderType
    notes: str


def plan_tier_follow_ups(
    clients: Iterable[ClientSnapshot],
    open_follow_up_client_ids: Collection[int],
    now: datetime | None = None,
) -> list[ReminderPlan]:
    """One follow-up reminder per due client that has no open follow-up."""
    current = utc_now() if now is None else to_utc(now, field="now")
    return [
        ReminderPlan(
            client_id=client.id,
            reminder_date=next_follow_up_date(client.tier, client.last_contact_date, current),
            reminder_type=ReminderType.FOLLOW_UP,
            notes=f"Tier-based follow-up for {client.name}",
        )
        for client in clients
        if client.id not in open_follow_up_client_ids
        and needs_follow_up(client.tier, client.last_contact_date, current)
    ]
