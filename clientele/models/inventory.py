"""Inventory SQLAlchemy model."""

from decimal import Decimal

from sqlalchemy import CheckConstraint, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from clientele.models.base import Base, TimestampMixin


class InventoryItem(Base, TimestampMixin):
    """A watch reference and how many pieces are on hand."""

    __tablename__ = "inventory"
    __table_args__ = (
        CheckConstraint("tier BETWEEN 1 AND 4", name="ck_inventory_tier_range"),
        CheckConstraint("available_quantity >= 0", name="ck_inventory_quantity"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    brand: Mapped[str | None] = mapped_column(String(100))
    model: Mapped[str] = mapped_column(String(255), nullable=False)
    reference_number: Mapped[str | None] = mapped_column(String(100))
    tier: Mapped[int] = mapped_column(Integer, nullable=False)
    available_quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    retail_price: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
