"""
Domain Interfaces (Ports)
"""

from .repositories import (
    CartRepository,
    NotificationRepository,
    OrderRepository,
    ProductRepository,
)
from .clients import NotificationDispatcher, RestrictionClient, SalesCounterService

__all__ = [
    "CartRepository",
    "NotificationRepository",
    "OrderRepository",
    "ProductRepository",
    "NotificationDispatcher",
    "RestrictionClient",
    "SalesCounterService",
]
