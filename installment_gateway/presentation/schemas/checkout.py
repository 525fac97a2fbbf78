"""Request schemas for installment checkout and servicing."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GuarantorSchema(BaseModel):
    """Person vouching for the buyer."""

    full_name: str = Field("", max_length=255, examples=["Awa Mbemba"])
    phone: str = Field("", max_length=50, examples=["+242060000000"])
    relation: str = Field("", max_length=100, examples=["sister"])
    address: str = Field("", max_length=500, examples=["12 rue Moe Poaty"])
    national_id: str = Field("", max_length=100)


class CheckoutRequestSchema(BaseModel):
    """Schema for POST /v1/installments/checkout request body."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "product_id": "550e8400-e29b-41d4-a716-446655440000",
                    "quantity": 1,
                    "first_payment_cents": 500000,
                    "payer_name": "Jean Malonga",
                    "transaction_code": "0612345678",
                }
            ]
        }
    )

    product_id: str = Field(
        ...,
        min_length=1,
        description="Product to buy in installments",
    )
    quantity: int = Field(1, ge=1, description="Units to buy")
    first_payment_cents: int = Field(
        ...,
        gt=0,
        description="Amount of the first transfer, in cents",
        examples=[500000],
    )
    payer_name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Name on the first transfer",
    )
    transaction_code: str = Field(
        ...,
        min_length=1,
        max_length=64,
        description="Transfer reference; non-digits are ignored, 10 digits required",
    )
    guarantor: Optional[GuarantorSchema] = None

    @field_validator("payer_name")
    @classmethod
    def validate_payer_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("payer_name cannot be empty or whitespace")
        return v.strip()


class TrancheProofSchema(BaseModel):
    """Schema for a buyer's tranche payment proof."""

    payer_name: str = Field(..., min_length=1, max_length=255)
    transaction_code: str = Field(..., min_length=1, max_length=64)
    amount_cents: int = Field(
        ...,
        gt=0,
        description="Must equal the tranche amount exactly",
        examples=[2250000],
    )


class SaleDecisionSchema(BaseModel):
    """Schema for the seller's decision on the initial payment."""

    approve: bool
    reason: Optional[str] = Field(None, max_length=500)


class TrancheDecisionSchema(BaseModel):
    """Schema for the seller's decision on a tranche proof."""

    approve: bool


class ProductConfigSchema(BaseModel):
    """Schema for PUT /v1/installments/seller/products/{product_id}/config."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "enabled": True,
                    "min_amount_cents": 500000,
                    "duration_days": 60,
                    "start_date": "2026-01-01T00:00:00Z",
                    "end_date": "2026-03-02T00:00:00Z",
                    "late_penalty_rate": 5,
                    "max_missed_payments": 3,
                    "require_guarantor": False,
                }
            ]
        }
    )

    enabled: bool
    min_amount_cents: Optional[int] = Field(None, description="Minimum first payment")
    duration_days: Optional[int] = Field(None, description="Plan duration in days")
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    late_penalty_rate: Optional[float] = Field(None, description="Percent, 0-100")
    max_missed_payments: Optional[int] = Field(None, description="1-12")
    require_guarantor: bool = False
