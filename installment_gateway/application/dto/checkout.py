"""Data transfer objects for installment checkout and servicing commands."""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
from uuid import UUID

_NON_DIGITS = re.compile(r"\D")


def normalize_transaction_code(value: str) -> str:
    """Keep only the digits of a transfer reference."""
    return _NON_DIGITS.sub("", value or "")


def _is_uuid(value: str) -> bool:
    try:
        UUID(str(value))
    except ValueError:
        return False
    return True


@dataclass(frozen=True)
class GuarantorInput:
    full_name: str = ""
    phone: str = ""
    relation: str = ""
    address: str = ""
    national_id: str = ""


@dataclass(frozen=True)
class CheckoutRequest:
    """Input data for opening an installment plan on a product."""

    customer_id: str
    product_id: str
    first_payment_cents: int
    payer_name: str
    transaction_code: str
    quantity: int = 1
    guarantor: Optional[GuarantorInput] = None

    def validate(self, code_length: int = 10) -> List[str]:
        errors = []

        if not self.customer_id or not self.customer_id.strip():
            errors.append("customer_id is required")

        if not _is_uuid(self.product_id):
            errors.append("product_id must be a valid identifier")

        if self.quantity < 1:
            errors.append("quantity must be at least 1")

        if self.first_payment_cents <= 0:
            errors.append("first_payment_cents must be positive")

        if not self.payer_name or not self.payer_name.strip():
            errors.append("payer_name is required")

        if len(normalize_transaction_code(self.transaction_code)) != code_length:
            errors.append(f"transaction_code must contain exactly {code_length} digits")

        return errors


@dataclass(frozen=True)
class TrancheProofRequest:
    """A buyer's claim that a tranche was paid by external transfer."""

    order_id: UUID
    index: int
    customer_id: str
    payer_name: str
    transaction_code: str
    amount_cents: int

    def validate(self, code_length: int = 10) -> List[str]:
        errors = []

        if self.index < 0:
            errors.append("tranche index must not be negative")

        if not self.payer_name or not self.payer_name.strip():
            errors.append("payer_name is required")

        if len(normalize_transaction_code(self.transaction_code)) != code_length:
            errors.append(f"transaction_code must contain exactly {code_length} digits")

        if self.amount_cents <= 0:
            errors.append("amount_cents must be positive")

        return errors


@dataclass(frozen=True)
class SaleDecisionRequest:
    order_id: UUID
    seller_id: str
    approve: bool
    reason: Optional[str] = None


@dataclass(frozen=True)
class TrancheDecisionRequest:
    order_id: UUID
    index: int
    seller_id: str
    approve: bool


@dataclass(frozen=True)
class ProductConfigRequest:
    """Installment terms a seller submits for one of their products."""

    product_id: UUID
    seller_id: str
    enabled: bool
    min_amount_cents: Optional[int] = None
    duration_days: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    late_penalty_rate: Optional[float] = None
    max_missed_payments: Optional[int] = None
    require_guarantor: bool = False
