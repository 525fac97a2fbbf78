"""Customer-side data consumed from the users service."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class OrderRestriction:
    """
    An administrative ban on placing orders.

    A restriction is only in force between its optional start and
    end dates.
    """

    restricted: bool = False
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    reason: str = ""

    def is_active(self, now: datetime) -> bool:
        if not self.restricted:
            return False
        if self.start_date is not None and now < self.start_date:
            return False
        if self.end_date is not None and now > self.end_date:
            return False
        return True


@dataclass(frozen=True)
class CustomerOrderHistory:
    """Aggregate counts over a customer's non-draft orders."""

    total_orders: int = 0
    delivered_orders: int = 0
    cancelled_orders: int = 0
    completed_installments: int = 0
    overdue_installments: int = 0
