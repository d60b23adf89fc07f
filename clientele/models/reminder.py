"""Reminder SQLAlchemy model."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clientele.engine.models import ReminderType
from clientele.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from clientele.models.client import Client


class Reminder(Base, TimestampMixin):
    """A scheduled reminder to contact a client."""

    __tablename__ = "reminders"

    id: Mapped[int] = mapped_column(primary_key=True)
    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id"), nullable=False)
    reminder_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    reminder_type: Mapped[ReminderType] = mapped_column(
        Enum(ReminderType, name="reminder_type"),
        default=ReminderType.FOLLOW_UP,
        nullable=False,
    )
    notes: Mapped[str | None] = mapped_column(Text)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Relationships
    client: Mapped["Client"] = relationship(back_populates="reminders")
