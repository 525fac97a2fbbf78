"""Database infrastructure."""

from .connection import get_db_session, DatabaseSessionManager, db_manager
from .models import (
    Base,
    CartItemModel,
    NotificationModel,
    OrderItemModel,
    OrderModel,
    ProductModel,
)

__all__ = [
    "get_db_session",
    "DatabaseSessionManager",
    "db_manager",
    "Base",
    "CartItemModel",
    "NotificationModel",
    "OrderItemModel",
    "OrderModel",
    "ProductModel",
]
