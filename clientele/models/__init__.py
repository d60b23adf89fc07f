"""SQLAlchemy models for the clientele application."""

from clientele.models.base import Base
from clientele.models.client import Client
from clientele.models.inventory import InventoryItem
from clientele.models.reminder import Reminder
from clientele.models.waitlist import WaitlistEntry

__all__ = [
    "Base",
    "Client",
    "InventoryItem",
    "Reminder",
    "WaitlistEntry",
]
