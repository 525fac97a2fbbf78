"""External collaborator interfaces."""

from abc import ABC, abstractmethod
from uuid import UUID

from installment_gateway.domain.entities import Notification, OrderRestriction


class RestrictionClient(ABC):
    """
    Abstract client for the users service restriction lookup.
    """

    @abstractmethod
    async def get_order_restriction(self, customer_id: str) -> OrderRestriction:
        """
        Fetch the customer's "can order" restriction.

        Raises:
            CustomerNotFoundException: If the customer doesn't exist
            RestrictionServiceException: If the lookup fails
        """
        ...


class NotificationDispatcher(ABC):
    """
    Abstract notification transport.

    Delivery is at-least-once with no guarantee reported back beyond
    the returned flag.
    """

    @abstractmethod
    async def dispatch(self, notification: Notification) -> bool:
        """
        Deliver a notification.

        Returns:
            True if the transport accepted it
        """
        ...


class SalesCounterService(ABC):
    """Recomputes a product's sales counter."""

    @abstractmethod
    async def recompute(self, product_id: UUID) -> int:
        """Recompute and persist the counter; returns the new value."""
        ...
