"""Data Transfer Objects for application layer."""

from .analytics import (
    EligibilityResponse,
    ProductConfigResponse,
    SellerAnalyticsResponse,
    StatusBreakdownDTO,
    SweepReport,
)
from .checkout import (
    CheckoutRequest,
    GuarantorInput,
    ProductConfigRequest,
    SaleDecisionRequest,
    TrancheDecisionRequest,
    TrancheProofRequest,
    normalize_transaction_code,
)
from .order import (
    InstallmentPlanDTO,
    InstallmentProgressDTO,
    OrderItemDTO,
    OrderResponse,
    TrancheDTO,
    TransactionProofDTO,
)

__all__ = [
    "EligibilityResponse",
    "ProductConfigResponse",
    "SellerAnalyticsResponse",
    "StatusBreakdownDTO",
    "SweepReport",
    "CheckoutRequest",
    "GuarantorInput",
    "ProductConfigRequest",
    "SaleDecisionRequest",
    "TrancheDecisionRequest",
    "TrancheProofRequest",
    "normalize_transaction_code",
    "InstallmentPlanDTO",
    "InstallmentProgressDTO",
    "OrderItemDTO",
    "OrderResponse",
    "TrancheDTO",
    "TransactionProofDTO",
]
