"""Pydantic snapshot models consumed by the scoring engine.

Snapshots are read-only copies of persisted records. Validation happens
when a snapshot is built, so the engine itself only ever sees well-formed
records. All timestamps are aware UTC datetimes.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, TypeVar

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from clientele.core.errors import ValidationError
from clientele.engine.tiers import Tier, parse_tier, tier_rank, validate_watch_tier
from clientele.engine.timeutil import elapsed_days, optional_utc, to_utc


class ReminderType(str, Enum):
    """Kinds of reminder a sales associate can schedule."""

    FOLLOW_UP = "follow-up"
    CALL_BACK = "call-back"
    MEETING = "meeting"
    CUSTOM = "custom"


class _Snapshot(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)


class ClientSnapshot(_Snapshot):
    """A client as seen by the engine."""

    id: int
    name: str
    tier: Tier | None = None
    last_contact_date: datetime | None = None
    last_purchase_date: datetime | None = None
    lifetime_spend: Decimal = Field(default=Decimal("0"))

    @field_validator("tier", mode="before")
    @classmethod
    def validate_tier(cls, v: object) -> Tier | None:
        return parse_tier(v)

    @field_validator("last_contact_date", "last_purchase_date", mode="before")
    @classmethod
    def validate_dates(cls, v: object) -> datetime | None:
        return optional_utc(v)

    @field_validator("lifetime_spend")
    @classmethod
    def validate_lifetime_spend(cls, v: Decimal) -> Decimal:
        if not v.is_finite() or v < 0:
            raise ValueError("lifetime spend must be a non-negative amount")
        return v

    @property
    def tier_rank(self) -> int:
        return tier_rank(self.tier)


class InventoryItemSnapshot(_Snapshot):
    """A watch reference held in inventory."""

    id: int
    model: str
    brand: str | None = None
    tier: int
    available_quantity: int = Field(ge=0)

    @field_validator("tier", mode="before")
    @classmethod
    def validate_tier(cls, v: object) -> int:
        return validate_watch_tier(v)

    @property
    def is_available(self) -> bool:
        return self.available_quantity > 0

    @property
    def display_name(self) -> str:
        if self.brand:
            return f"{self.brand} {self.model}"
        return self.model


class WaitlistEntrySnapshot(_Snapshot):
    """A client's standing request for an allocation.

    ``desired_model`` narrows eligible inventory to one model. Without it,
    ``desired_tier`` narrows to one watch tier. With neither, any available
    piece is eligible.
    """

    id: int
    client_id: int
    desired_model: str | None = None
    desired_tier: int | None = None
    wait_start_date: datetime
    is_active: bool = True

    @field_validator("desired_tier", mode="before")
    @classmethod
    def validate_desired_tier(cls, v: object) -> int | None:
        if v is None:
            return None
        return validate_watch_tier(v)

    @field_validator("wait_start_date", mode="before")
    @classmethod
    def validate_wait_start(cls, v: object) -> datetime:
        return to_utc(v, field="wait_start_date")

    def days_waiting(self, now: datetime) -> int:
        return elapsed_days(self.wait_start_date, now)

    def accepts(self, item: InventoryItemSnapshot) -> bool:
        """Whether ``item`` satisfies what this entry is waiting for."""
        if self.desired_model:
            wanted = self.desired_model.strip().casefold()
            return wanted in {item.model.casefold(), item.display_name.casefold()}
        if self.desired_tier is not None:
            return item.tier == self.desired_tier
        return True

    @property
    def wanted_label(self) -> str:
        if self.desired_model:
            return self.desired_model
        if self.desired_tier is not None:
            return f"Tier {self.desired_tier} allocation"
        return "Any allocation"


class ReminderSnapshot(_Snapshot):
    """A scheduled reminder. ``completed_at`` is set exactly when completed."""

    id: int
    client_id: int
    reminder_date: datetime
    reminder_type: ReminderType = ReminderType.FOLLOW_UP
    notes: str | None = None
    is_completed: bool = False
    completed_at: datetime | None = None

    @field_validator("reminder_date", mode="before")
    @classmethod
    def validate_reminder_date(cls, v: object) -> datetime:
        return to_utc(v, field="reminder_date")

    @field_validator("completed_at", mode="before")
    @classmethod
    def validate_completed_at(cls, v: object) -> datetime | None:
        return optional_utc(v, field="completed_at")

    @model_validator(mode="after")
    def check_completion(self) -> "ReminderSnapshot":
        if self.is_completed != (self.completed_at is not None):
            raise ValueError("completed_at must be set if and only if is_completed")
        return self


SnapshotT = TypeVar("SnapshotT", bound=BaseModel)


def build_snapshot(model: type[SnapshotT], data: Any) -> SnapshotT:
    """Validate ``data`` (a mapping or ORM row) into a snapshot.

    Raises:
        ValidationError: With the first failing field and its message.
    """
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        message = first.get("msg", "invalid value")
        raise ValidationError(
            f"Invalid {model.__name__}: {field}: {message}" if field else message,
            field=field,
        ) from exc
