"""Pydantic schemas for API request/response validation."""

from .analytics import (
    EligibilitySchema,
    ProductConfigResponseSchema,
    SellerAnalyticsSchema,
    StatusBreakdownSchema,
    SweepReportSchema,
)
from .checkout import (
    CheckoutRequestSchema,
    GuarantorSchema,
    ProductConfigSchema,
    SaleDecisionSchema,
    TrancheDecisionSchema,
    TrancheProofSchema,
)
from .error import ErrorResponseSchema
from .order import (
    InstallmentPlanSchema,
    InstallmentProgressSchema,
    OrderItemSchema,
    OrderResponseSchema,
    TrancheSchema,
    TransactionProofSchema,
)

__all__ = [
    "EligibilitySchema",
    "ProductConfigResponseSchema",
    "SellerAnalyticsSchema",
    "StatusBreakdownSchema",
    "SweepReportSchema",
    "CheckoutRequestSchema",
    "GuarantorSchema",
    "ProductConfigSchema",
    "SaleDecisionSchema",
    "TrancheDecisionSchema",
    "TrancheProofSchema",
    "ErrorResponseSchema",
    "InstallmentPlanSchema",
    "InstallmentProgressSchema",
    "OrderItemSchema",
    "OrderResponseSchema",
    "TrancheSchema",
    "TransactionProofSchema",
]
