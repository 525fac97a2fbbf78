"""External API client implementations."""

from .notification_dispatcher import HttpNotificationDispatcher
from .restriction_client import HttpRestrictionClient

__all__ = [
    "HttpNotificationDispatcher",
    "HttpRestrictionClient",
]
