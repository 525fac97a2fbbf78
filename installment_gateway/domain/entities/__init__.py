"""Domain Entities - Core business objects."""

from .analytics import SellerInstallmentSummary, StatusAggregate
from .customer import CustomerOrderHistory, OrderRestriction
from .events import OverdueTranchesDetected
from .notification import Notification, NotificationStatus, NotificationType
from .order import (
    SALES_COUNTED_STATUSES,
    SWEEPABLE_ORDER_STATUSES,
    Order,
    OrderItem,
    OrderItemSnapshot,
    OrderStatus,
    PaymentType,
)
from .plan import (
    OPEN_TRANCHE_STATUSES,
    RESOLVED_TRANCHE_STATUSES,
    Guarantor,
    InstallmentPlan,
    RiskLevel,
    Tranche,
    TrancheStatus,
    TransactionProof,
)
from .product import Product, ProductInstallmentConfig, ProductStatus

__all__ = [
    "SellerInstallmentSummary",
    "StatusAggregate",
    "CustomerOrderHistory",
    "OrderRestriction",
    "OverdueTranchesDetected",
    "Notification",
    "NotificationStatus",
    "NotificationType",
    "SALES_COUNTED_STATUSES",
    "SWEEPABLE_ORDER_STATUSES",
    "Order",
    "OrderItem",
    "OrderItemSnapshot",
    "OrderStatus",
    "PaymentType",
    "OPEN_TRANCHE_STATUSES",
    "RESOLVED_TRANCHE_STATUSES",
    "Guarantor",
    "InstallmentPlan",
    "RiskLevel",
    "Tranche",
    "TrancheStatus",
    "TransactionProof",
    "Product",
    "ProductInstallmentConfig",
    "ProductStatus",
]
