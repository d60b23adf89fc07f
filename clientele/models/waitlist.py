"""Waitlist SQLAlchemy model."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clientele.models.base import Base, TimestampMixin, utcnow

if TYPE_CHECKING:
    from clientele.models.client import Client


class WaitlistEntry(Base, TimestampMixin):
    """A client waiting for a model or for any piece of a watch tier."""

    __tablename__ = "waitlist"

    id: Mapped[int] = mapped_column(primary_key=True)
    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id"), nullable=False)
    desired_model: Mapped[str | None] = mapped_column(String(255))
    desired_tier: Mapped[int | None] = mapped_column(Integer)
    wait_start_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)

    # Relationships
    client: Mapped["Client"] = relationship(back_populates="waitlist_entries")
