"""Domain events raised by the reconciliation sweeper."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID


@dataclass(frozen=True)
class OverdueTranchesDetected:
    """
    A confirmed plan has one or more overdue tranches after a sweep.

    Consumers decide whether the count breaches the product's
    missed-payment threshold.
    """

    order_id: UUID
    product_id: UUID
    seller_id: Optional[str]
    customer_id: str
    overdue_count: int
    occurred_at: datetime
