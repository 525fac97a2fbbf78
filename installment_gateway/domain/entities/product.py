"""Catalog product as seen by the installment engine."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID, uuid4


class ProductStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass
class ProductInstallmentConfig:
    """Installment terms a seller attached to a product."""

    enabled: bool = False
    min_amount_cents: int = 0
    duration_days: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    late_penalty_rate: float = 0.0
    max_missed_payments: int = 3
    require_guarantor: bool = False
    suspended_at: Optional[datetime] = None

    def is_active(self, now: datetime) -> bool:
        """Installments are offered only while enabled and inside the window."""
        if not self.enabled:
            return False
        if self.start_date is None or self.end_date is None:
            return False
        return self.start_date <= now <= self.end_date


@dataclass
class Product:
    seller_id: str
    title: str
    price_cents: int
    status: ProductStatus = ProductStatus.APPROVED
    installment: ProductInstallmentConfig = field(default_factory=ProductInstallmentConfig)
    shop_name: str = ""
    slug: Optional[str] = None
    images: List[str] = field(default_factory=list)
    sales_count: int = 0
    id: UUID = field(default_factory=uuid4)

    @property
    def is_purchasable(self) -> bool:
        return self.status == ProductStatus.APPROVED
