"""Client SQLAlchemy model."""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clientele.engine.tiers import Tier
from clientele.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from clientele.models.reminder import Reminder
    from clientele.models.waitlist import WaitlistEntry


class Client(Base, TimestampMixin):
    """A boutique client."""

    __tablename__ = "clients"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(50))
    tier: Mapped[Tier | None] = mapped_column(Enum(Tier, name="client_tier"))
    lifetime_spend: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), default=Decimal("0"), nullable=False
    )
    last_contact_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    last_purchase_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Relationships
    waitlist_entries: Mapped[list["WaitlistEntry"]] = relationship(
        back_populates="client"
    )
    reminders: Mapped[list["Reminder"]] = relationship(back_populates="client")
