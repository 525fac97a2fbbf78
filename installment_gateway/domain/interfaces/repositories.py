"""Repository interfaces for data persistence."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from installment_gateway.domain.entities import (
    CustomerOrderHistory,
    Notification,
    Order,
    Product,
    ProductInstallmentConfig,
    SellerInstallmentSummary,
)


class OrderRepository(ABC):
    """
    Abstract repository for Order persistence.

    Updates are conditional on ``Order.version``; implementations must
    raise ConcurrentModificationException when the stored version moved.
    """

    @abstractmethod
    async def add(self, order: Order) -> Order:
        """Persist a new order with its line items."""
        ...

    @abstractmethod
    async def update(self, order: Order) -> Order:
        """
        Persist changes to an existing order.

        Raises:
            ConcurrentModificationException: If the order was changed
                by another writer since it was read
        """
        ...

    @abstractmethod
    async def get_by_id(self, order_id: UUID) -> Optional[Order]:
        """Retrieve an order by ID, None if missing."""
        ...

    @abstractmethod
    async def get_installment_order_for_customer(
        self,
        order_id: UUID,
        customer_id: str,
    ) -> Optional[Order]:
        """Retrieve a non-draft installment order owned by the buyer."""
        ...

    @abstractmethod
    async def get_installment_order_for_seller(
        self,
        order_id: UUID,
        seller_id: str,
    ) -> Optional[Order]:
        """Retrieve a non-draft installment order sold by the seller."""
        ...

    @abstractmethod
    async def list_sweepable(self) -> List[Order]:
        """
        Installment orders the reconciliation sweeper must visit.

        Returns confirmed, non-draft orders that are active or overdue.
        """
        ...

    @abstractmethod
    async def get_customer_history(self, customer_id: str) -> CustomerOrderHistory:
        """Aggregate counts over the customer's non-draft orders."""
        ...

    @abstractmethod
    async def get_seller_summary(self, seller_id: str) -> SellerInstallmentSummary:
        """Counts and sums of the seller's installment orders by status."""
        ...

    @abstractmethod
    async def count_product_sales(self, product_id: UUID) -> int:
        """Units of the product sold through orders that count as sales."""
        ...


class ProductRepository(ABC):
    """Catalog access: reads, plus the installment-specific writes."""

    @abstractmethod
    async def get_by_id(self, product_id: UUID) -> Optional[Product]:
        ...

    @abstractmethod
    async def update_installment_config(
        self,
        product_id: UUID,
        config: ProductInstallmentConfig,
    ) -> None:
        ...

    @abstractmethod
    async def suspend_installments(self, product_id: UUID, suspended_at: datetime) -> bool:
        """
        Disable installments on a product.

        Returns:
            True if the product was enabled and is now suspended, False
            if it was already disabled
        """
        ...

    @abstractmethod
    async def update_sales_count(self, product_id: UUID, sales_count: int) -> None:
        ...


class CartRepository(ABC):
    """Buyer cart access."""

    @abstractmethod
    async def remove_product(self, customer_id: str, product_id: UUID) -> int:
        """Remove a product from the buyer's cart; returns rows removed."""
        ...


class NotificationRepository(ABC):
    """
    Outbox for notifications.

    Notifications are persisted with the state change that caused them
    and delivered later by the relay.
    """

    @abstractmethod
    async def add(self, notification: Notification) -> Notification:
        ...

    @abstractmethod
    async def update(self, notification: Notification) -> Notification:
        ...

    @abstractmethod
    async def get_pending(self, limit: int = 100) -> List[Notification]:
        """Pending or retrying notifications, oldest first."""
        ...
