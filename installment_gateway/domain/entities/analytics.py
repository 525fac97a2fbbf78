"""Read-side aggregates for seller reporting."""

from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class StatusAggregate:
    """Counts and sums of a seller's installment orders in one status."""

    status: str
    orders: int
    total_cents: int
    paid_cents: int
    remaining_cents: int
    risk_exposure_cents: int = 0


@dataclass
class SellerInstallmentSummary:
    seller_id: str
    by_status: List[StatusAggregate] = field(default_factory=list)

    @property
    def total_installment_sales(self) -> int:
        return sum(row.orders for row in self.by_status)

    @property
    def revenue_in_progress_cents(self) -> int:
        return sum(row.remaining_cents for row in self.by_status)

    @property
    def collected_cents(self) -> int:
        return sum(row.paid_cents for row in self.by_status)

    @property
    def risk_exposure_cents(self) -> int:
        return sum(row.risk_exposure_cents for row in self.by_status)

    def orders_in(self, status: str) -> int:
        return sum(row.orders for row in self.by_status if row.status == status)
