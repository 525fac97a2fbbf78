"""Order-related Pydantic schemas."""

from typing import List, Optional

from pydantic import BaseModel, Field


class TransactionProofSchema(BaseModel):
    sender_name: str
    transaction_code: str
    amount_cents: int
    submitted_at: str


class TrancheSchema(BaseModel):
    """Schema for a single tranche in an order response."""

    index: int = Field(..., ge=0, description="Stable position in the schedule")
    due_date: str = Field(..., description="ISO 8601 due date")
    amount_cents: int = Field(..., ge=0)
    status: str = Field(
        ...,
        description="pending, proof_uploaded, paid, overdue or waived",
    )
    penalty_cents: int = Field(0, ge=0)
    is_down_payment: bool = False
    transaction_proof: Optional[TransactionProofSchema] = None
    validated_at: Optional[str] = None
    paid_at: Optional[str] = None


class InstallmentProgressSchema(BaseModel):
    total_cents: int
    paid_cents: int
    remaining_cents: int
    progress: int = Field(..., ge=0, le=100, description="Percent of principal settled")


class InstallmentPlanSchema(BaseModel):
    eligibility_score: int = Field(..., ge=0, le=100)
    risk_level: str
    late_penalty_rate: float
    first_payment_min_cents: int
    amount_paid_cents: int
    remaining_cents: int
    total_penalty_cents: int
    overdue_count: int
    next_due_date: Optional[str] = None
    sale_confirmed_at: Optional[str] = None
    guarantor_required: bool = False
    schedule: List[TrancheSchema]


class OrderItemSchema(BaseModel):
    product_id: str
    quantity: int
    title: str
    price_cents: int
    shop_id: str
    shop_name: str
    image: Optional[str] = None
    slug: Optional[str] = None


class OrderResponseSchema(BaseModel):
    """Schema for installment order responses."""

    order_id: str = Field(..., description="UUID of the order")
    customer_id: str
    seller_id: Optional[str] = None
    status: str = Field(
        ...,
        description=(
            "pending_installment, installment_active, overdue_installment, "
            "completed or cancelled"
        ),
    )
    payment_type: str
    total_cents: int
    paid_cents: int
    remaining_cents: int
    version: int = Field(..., description="Optimistic concurrency version")
    items: List[OrderItemSchema]
    installment_plan: Optional[InstallmentPlanSchema] = None
    installment_progress: Optional[InstallmentProgressSchema] = None
    cancellation_reason: Optional[str] = None
    created_at: str
