"""Schemas for seller analytics, eligibility, product terms and sweeps."""

from typing import List, Optional

from pydantic import BaseModel, Field


class StatusBreakdownSchema(BaseModel):
    status: str
    orders: int
    total_cents: int
    paid_cents: int
    remaining_cents: int


class SellerAnalyticsSchema(BaseModel):
    """Schema for GET /v1/installments/seller/analytics."""

    seller_id: str
    total_installment_sales: int = Field(..., ge=0)
    revenue_in_progress_cents: int = Field(..., description="Sum of remaining balances")
    collected_cents: int = Field(..., description="Sum of amounts paid, penalties included")
    risk_exposure_cents: int = Field(
        ...,
        description="Remaining balance of orders with overdue tranches",
    )
    overdue_orders: int
    completed_orders: int
    by_status: List[StatusBreakdownSchema]


class EligibilitySchema(BaseModel):
    """Schema for GET /v1/installments/eligibility."""

    customer_id: str
    eligibility_score: int = Field(..., ge=0, le=100)
    risk_level: str = Field(..., description="low, medium or high")


class ProductConfigResponseSchema(BaseModel):
    product_id: str
    enabled: bool
    min_amount_cents: int
    duration_days: Optional[int] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    late_penalty_rate: float
    max_missed_payments: int
    require_guarantor: bool
    suspended_at: Optional[str] = None


class SweepReportSchema(BaseModel):
    """Schema for POST /v1/installments/sweeps."""

    processed_orders: int
    reminders_sent: int
    overdue_warnings_sent: int
    suspended_products: int
    conflicts: int
