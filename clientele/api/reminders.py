"""Reminder endpoints: complete, reopen, snooze, edit, delete, generate."""

from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from clientele.api.deps import get_repository, rate_limit
from clientele.core.errors import ValidationError
from clientele.core.logging import get_logger
from clientele.engine.followup import needs_follow_up
from clientele.engine.models import ReminderSnapshot, ReminderType
from clientele.engine.reminders import (
    ReminderUrgency,
    complete_reminder,
    edit_reminder,
    plan_tier_follow_ups,
    reminder_urgency,
    reopen_reminder,
    snooze_reminder,
)
from clientele.engine.timeutil import utc_now
from clientele.ratelimit import RateLimitCategory
from clientele.repository import ClienteleRepository

logger = get_logger(__name__)

router = APIRouter(prefix="/api/reminders", tags=["reminders"])


class ReminderUpdateRequest(BaseModel):
    """Either an action or a set of field edits."""

    action: Literal["complete", "reopen", "snooze"] | None = None
    new_date: datetime | None = None
    reminder_date: datetime | None = None
    reminder_type: ReminderType | None = None
    notes: str | None = Field(default=None, max_length=5000)


class ReminderResponse(BaseModel):
    id: int
    client_id: int
    reminder_date: datetime
    reminder_type: ReminderType
    notes: str | None
    is_completed: bool
    completed_at: datetime | None
    urgency: ReminderUrgency


class GenerateFollowUpsResponse(BaseModel):
    message: str
    created: int
    total_clients: int
    clients_needing_followup: int
    reminders: list[ReminderResponse]


def _to_reminder_response(reminder: ReminderSnapshot, now: datetime) -> ReminderResponse:
    return ReminderResponse(
        id=reminder.id,
        client_id=reminder.client_id,
        reminder_date=reminder.reminder_date,
        reminder_type=reminder.reminder_type,
        notes=reminder.notes,
        is_completed=reminder.is_completed,
        completed_at=reminder.completed_at,
        urgency=reminder_urgency(reminder.reminder_date, now),
    )


@router.patch(
    "/{reminder_id}",
    response_model=ReminderResponse,
    dependencies=[Depends(rate_limit(RateLimitCategory.WRITE))],
)
async def update_reminder(
    reminder_id: int,
    payload: ReminderUpdateRequest,
    repo: ClienteleRepository = Depends(get_repository),
) -> ReminderResponse:
    """Complete, reopen, snooze, or edit a reminder."""
    now = utc_now()
    reminder = await repo.get_reminder(reminder_id)

    if payload.action == "complete":
        changes = complete_reminder(reminder, now)
    elif payload.action == "reopen":
        changes = reopen_reminder(reminder)
    elif payload.action == "snooze":
        if payload.new_date is None:
            raise ValidationError("new_date is required to snooze", field="new_date")
        changes = snooze_reminder(reminder, payload.new_date)
    else:
        provided = payload.model_dump(exclude_unset=True)
        changes = edit_reminder(
            reminder,
            reminder_date=payload.reminder_date,
            reminder_type=payload.reminder_type,
            notes=payload.notes,
            clear_notes="notes" in provided and payload.notes is None,
        )

    if changes:
        reminder = await repo.update_reminder(reminder_id, changes)
        logger.info(
            "reminder_updated",
            reminder_id=reminder_id,
            action=payload.action or "edit",
            fields=sorted(changes),
        )
    return _to_reminder_response(reminder, now)


@router.delete(
    "/{reminder_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(rate_limit(RateLimitCategory.WRITE))],
)
async def delete_reminder(
    reminder_id: int,
    repo: ClienteleRepository = Depends(get_repository),
) -> None:
    await repo.delete_reminder(reminder_id)
    logger.info("reminder_deleted", reminder_id=reminder_id)


@router.post(
    "/generate-tier-followups",
    response_model=GenerateFollowUpsResponse,
    dependencies=[Depends(rate_limit(RateLimitCategory.WRITE))],
)
async def generate_tier_follow_ups(
    repo: ClienteleRepository = Depends(get_repository),
) -> GenerateFollowUpsResponse:
    """Create a follow-up reminder for each due client without an open one."""
    now = utc_now()
    clients = await repo.fetch_clients()
    due_count = sum(
        1 for client in clients
        if needs_follow_up(client.tier, client.last_contact_date, now)
    )
    open_ids = await repo.open_follow_up_client_ids()
    plans = plan_tier_follow_ups(clients, open_ids, now)
    created = await repo.create_reminders(plans)

    logger.info(
        "tier_follow_ups_generated",
        created=len(created),
        total_clients=len(clients),
        clients_needing_followup=due_count,
    )
    if not clients:
        message = "No clients found"
    elif due_count == 0:
        message = "No clients need follow-up reminders at this time"
    elif not created:
        message = "All clients already have active follow-up reminders"
    else:
        message = f"Successfully created {len(created)} tier-based follow-up reminders"

    return GenerateFollowUpsResponse(
        message=message,
        created=len(created),
        total_clients=len(clients),
        clients_needing_followup=due_count,
        reminders=[_to_reminder_response(r, now) for r in created],
    )
