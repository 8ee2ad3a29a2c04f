"""Business logic services for medication bot."""

from .inventory import InventoryManager
from .notification_manager import NotificationManager
from .pending import PendingAck, PendingAckTracker
from .scheduler import ReminderScheduler

__all__ = [
    "InventoryManager",
    "NotificationManager",
    "PendingAck",
    "PendingAckTracker",
    "ReminderScheduler",
]
