"""Data transfer objects for seller analytics, eligibility and sweeps."""

from dataclasses import dataclass, field
from typing import List, Optional

from installment_gateway.domain.entities import (
    OrderStatus,
    ProductInstallmentConfig,
    SellerInstallmentSummary,
)


@dataclass(frozen=True)
class StatusBreakdownDTO:
    status: str
    orders: int
    total_cents: int
    paid_cents: int
    remaining_cents: int


@dataclass(frozen=True)
class SellerAnalyticsResponse:
    """Per-seller installment aggregates."""

    seller_id: str
    total_installment_sales: int
    revenue_in_progress_cents: int
    collected_cents: int
    risk_exposure_cents: int
    overdue_orders: int
    completed_orders: int
    by_status: List[StatusBreakdownDTO]

    @classmethod
    def from_summary(cls, summary: SellerInstallmentSummary) -> "SellerAnalyticsResponse":
        return cls(
            seller_id=summary.seller_id,
            total_installment_sales=summary.total_installment_sales,
            revenue_in_progress_cents=summary.revenue_in_progress_cents,
            collected_cents=summary.collected_cents,
            risk_exposure_cents=summary.risk_exposure_cents,
            overdue_orders=summary.orders_in(OrderStatus.OVERDUE_INSTALLMENT.value),
            completed_orders=summary.orders_in(OrderStatus.COMPLETED.value),
            by_status=[
                StatusBreakdownDTO(
                    status=row.status,
                    orders=row.orders,
                    total_cents=row.total_cents,
                    paid_cents=row.paid_cents,
                    remaining_cents=row.remaining_cents,
                )
                for row in summary.by_status
            ],
        )


@dataclass(frozen=True)
class EligibilityResponse:
    customer_id: str
    eligibility_score: int
    risk_level: str


@dataclass(frozen=True)
class ProductConfigResponse:
    product_id: str
    enabled: bool
    min_amount_cents: int
    duration_days: Optional[int]
    start_date: Optional[str]
    end_date: Optional[str]
    late_penalty_rate: float
    max_missed_payments: int
    require_guarantor: bool
    suspended_at: Optional[str]

    @classmethod
    def from_config(
        cls,
        product_id: str,
        config: ProductInstallmentConfig,
    ) -> "ProductConfigResponse":
        return cls(
            product_id=product_id,
            enabled=config.enabled,
            min_amount_cents=config.min_amount_cents,
            duration_days=config.duration_days,
            start_date=config.start_date.isoformat() if config.start_date else None,
            end_date=config.end_date.isoformat() if config.end_date else None,
            late_penalty_rate=config.late_penalty_rate,
            max_missed_payments=config.max_missed_payments,
            require_guarantor=config.require_guarantor,
            suspended_at=config.suspended_at.isoformat() if config.suspended_at else None,
        )


@dataclass
class SweepReport:
    """Counters accumulated by one reconciliation pass."""

    processed_orders: int = 0
    reminders_sent: int = 0
    overdue_warnings_sent: int = 0
    suspended_products: int = 0
    conflicts: int = 0
    conflicted_order_ids: List[str] = field(default_factory=list)
