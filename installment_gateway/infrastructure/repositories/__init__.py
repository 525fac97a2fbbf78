"""Repository implementations."""

from .cart_repository import SqlCartRepository
from .notification_repository import SqlNotificationRepository
from .order_repository import SqlOrderRepository
from .product_repository import SqlProductRepository
from .sales_counter import SqlSalesCounterService

__all__ = [
    "SqlCartRepository",
    "SqlNotificationRepository",
    "SqlOrderRepository",
    "SqlProductRepository",
    "SqlSalesCounterService",
]
