"""Change notifications for committed rows."""

from ..core.config import settings
from .broker import DELETE, INSERT, UPDATE, ChangeBroker, ChangeEvent, Subscription
from .hooks import ChangeCapture

# Broker shared by the application; WebSocket subscribers attach here
change_broker = ChangeBroker(queue_size=settings.REALTIME_QUEUE_SIZE)

__all__ = [
    "ChangeBroker",
    "ChangeCapture",
    "ChangeEvent",
    "Subscription",
    "change_broker",
    "INSERT",
    "UPDATE",
    "DELETE",
]
