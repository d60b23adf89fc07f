"""Persistence collaborator backed by an async SQLAlchemy session.

The engine never touches the database. Route handlers ask this repository
for snapshots, hand them to the engine, and write any resulting changes
back through it. Every database failure surfaces as ``PersistenceError``;
nothing is retried here.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterable, Mapping, Sequence
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, TypeVar

from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from clientele.core.errors import NotFoundError, PersistenceError, ValidationError
from clientele.core.logging import get_logger
from clientele.engine.models import (
    ClientSnapshot,
    InventoryItemSnapshot,
    ReminderSnapshot,
    ReminderType,
    WaitlistEntrySnapshot,
    build_snapshot,
)
from clientele.engine.reminders import ReminderPlan
from clientele.engine.tiers import Tier
from clientele.engine.timeutil import to_utc
from clientele.models import Client, InventoryItem, Reminder, WaitlistEntry

logger = get_logger(__name__)

SnapshotT = TypeVar("SnapshotT", bound=BaseModel)

REMINDER_FIELDS = frozenset(
    {"reminder_date", "reminder_type", "notes", "is_completed", "completed_at"}
)


class ClientFilter(BaseModel):
    """Optional narrowing for ``fetch_clients``."""

    ids: list[int] | None = None
    tiers: list[Tier] | None = None
    include_untiered: bool = True
    search: str | None = Field(default=None, min_length=1)


class ClienteleRepository:
    """Reads snapshots and writes primary records for the engine's callers."""

    def __init__(self, session: AsyncSession):
        self._session = session

    @asynccontextmanager
    async def _operation(self, name: str) -> AsyncIterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            logger.error("persistence_failed", operation=name, error=str(exc), exc_info=exc)
            raise PersistenceError(name) from exc

    def _snapshots(
        self, model: type[SnapshotT], rows: Iterable[Any], kind: str
    ) -> list[SnapshotT]:
        snapshots: list[SnapshotT] = []
        for row in rows:
            try:
                snapshots.append(build_snapshot(model, row))
            except ValidationError as exc:
                logger.warning(
                    "snapshot_row_skipped",
                    kind=kind,
                    row_id=getattr(row, "id", None),
                    error=str(exc),
                )
        return snapshots

    async def fetch_active_waitlist(self) -> list[WaitlistEntrySnapshot]:
        stmt = (
            select(WaitlistEntry)
            .where(WaitlistEntry.is_active.is_(True))
            .order_by(WaitlistEntry.wait_start_date, WaitlistEntry.id)
        )
        async with self._operation("fetch_active_waitlist"):
            rows = (await self._session.execute(stmt)).scalars().all()
        return self._snapshots(WaitlistEntrySnapshot, rows, "waitlist")

    async def fetch_available_inventory(self) -> list[InventoryItemSnapshot]:
        stmt = (
            select(InventoryItem)
            .where(InventoryItem.available_quantity > 0)
            .order_by(InventoryItem.tier, InventoryItem.id)
        )
        async with self._operation("fetch_available_inventory"):
            rows = (await self._session.execute(stmt)).scalars().all()
        return self._snapshots(InventoryItemSnapshot, rows, "inventory")

    async def fetch_clients(
        self, client_filter: ClientFilter | None = None
    ) -> list[ClientSnapshot]:
        stmt = select(Client).order_by(Client.id)
        if client_filter is not None:
            if client_filter.ids is not None:
                stmt = stmt.where(Client.id.in_(client_filter.ids))
            if client_filter.tiers is not None:
                tier_clause = Client.tier.in_(client_filter.tiers)
                if client_filter.include_untiered:
                    tier_clause = tier_clause | Client.tier.is_(None)
                stmt = stmt.where(tier_clause)
            if client_filter.search:
                stmt = stmt.where(
                    Client.name.ilike(f"%{client_filter.search.strip()}%")
                )
        async with self._operation("fetch_clients"):
            rows = (await self._session.execute(stmt)).scalars().all()
        return self._snapshots(ClientSnapshot, rows, "client")

    async def record_last_contact(self, client_id: int, timestamp: datetime) -> ClientSnapshot:
        async with self._operation("record_last_contact"):
            client = await self._session.get(Client, client_id)
            if client is None:
                raise NotFoundError("Client", client_id)
            client.last_contact_date = to_utc(timestamp, field="timestamp")
            await self._session.flush()
        return build_snapshot(ClientSnapshot, client)

    async def get_reminder(self, reminder_id: int) -> ReminderSnapshot:
        async with self._operation("get_reminder"):
            reminder = await self._session.get(Reminder, reminder_id)
        if reminder is None:
            raise NotFoundError("Reminder", reminder_id)
        return build_snapshot(ReminderSnapshot, reminder)

    async def update_reminder(
        self, reminder_id: int, fields: Mapping[str, Any]
    ) -> ReminderSnapshot:
        """Apply ``fields`` to a reminder and return the stored result.

        Raises:
            ValidationError: For unknown fields or a broken completion state.
            NotFoundError: If the reminder does not exist.
        """
        unknown = set(fields) - REMINDER_FIELDS
        if unknown:
            raise ValidationError(
                f"Unknown reminder fields: {', '.join(sorted(unknown))}",
                field=sorted(unknown)[0],
            )
        async with self._operation("update_reminder"):
            reminder = await self._session.get(Reminder, reminder_id)
            if reminder is None:
                raise NotFoundError("Reminder", reminder_id)

            merged = {
                name: getattr(reminder, name)
                for name in ("id", "client_id", *sorted(REMINDER_FIELDS))
            }
            merged.update(fields)
            snapshot = build_snapshot(ReminderSnapshot, merged)

            for name in fields:
                setattr(reminder, name, getattr(snapshot, name))
            await self._session.flush()
        return snapshot

    async def delete_reminder(self, reminder_id: int) -> None:
        async with self._operation("delete_reminder"):
            reminder = await self._session.get(Reminder, reminder_id)
            if reminder is None:
                raise NotFoundError("Reminder", reminder_id)
            await self._session.delete(reminder)
            await self._session.flush()

    async def open_follow_up_client_ids(self) -> set[int]:
        stmt = select(Reminder.client_id).where(
            Reminder.reminder_type == ReminderType.FOLLOW_UP,
            Reminder.is_completed.is_(False),
        )
        async with self._operation("open_follow_up_client_ids"):
            rows = (await self._session.execute(stmt)).scalars().all()
        return set(rows)

    async def create_reminders(self, plans: Sequence[ReminderPlan]) -> list[ReminderSnapshot]:
        reminders = [
            Reminder(
                client_id=plan.client_id,
                reminder_date=plan.reminder_date,
                reminder_type=plan.reminder_type,
                notes=plan.notes,
                is_completed=False,
            )
            for plan in plans
        ]
        if not reminders:
            return []
        async with self._operation("create_reminders"):
            self._session.add_all(reminders)
            await self._session.flush()
        return [build_snapshot(ReminderSnapshot, reminder) for reminder in reminders]
