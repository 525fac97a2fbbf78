"""Order aggregate: the root that owns line items and the installment plan."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from uuid import UUID, uuid4

from .plan import InstallmentPlan


class OrderStatus(str, Enum):
    # Installment lifecycle
    PENDING_INSTALLMENT = "pending_installment"
    INSTALLMENT_ACTIVE = "installment_active"
    OVERDUE_INSTALLMENT = "overdue_installment"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    # Statuses of one-time orders, owned by the order service
    PENDING = "pending"
    CONFIRMED = "confirmed"
    DELIVERING = "delivering"
    DELIVERED = "delivered"


# Orders the reconciliation sweeper is allowed to touch
SWEEPABLE_ORDER_STATUSES = frozenset(
    {OrderStatus.INSTALLMENT_ACTIVE, OrderStatus.OVERDUE_INSTALLMENT}
)

# Orders counted towards a product's sales counter
SALES_COUNTED_STATUSES = frozenset(
    {
        OrderStatus.CONFIRMED,
        OrderStatus.DELIVERING,
        OrderStatus.DELIVERED,
        OrderStatus.COMPLETED,
    }
)


class PaymentType(str, Enum):
    FULL = "full"
    INSTALLMENT = "installment"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class OrderItemSnapshot:
    """Catalog data frozen at order creation time."""

    title: str
    price_cents: int
    shop_id: str
    shop_name: str = ""
    image: Optional[str] = None
    slug: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "price_cents": self.price_cents,
            "shop_id": self.shop_id,
            "shop_name": self.shop_name,
            "image": self.image,
            "slug": self.slug,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "OrderItemSnapshot":
        return cls(
            title=data.get("title", ""),
            price_cents=int(data.get("price_cents", 0)),
            shop_id=data.get("shop_id", ""),
            shop_name=data.get("shop_name", ""),
            image=data.get("image"),
            slug=data.get("slug"),
        )


@dataclass
class OrderItem:
    product_id: UUID
    quantity: int
    snapshot: OrderItemSnapshot


@dataclass
class Order:
    """
    A purchase attempt.

    ``version`` is bumped on every committed update and is used as the
    optimistic-concurrency token by the repository.
    """

    customer_id: str
    items: List[OrderItem]
    total_cents: int
    status: OrderStatus
    payment_type: PaymentType = PaymentType.INSTALLMENT
    paid_cents: int = 0
    remaining_cents: Optional[int] = None
    installment_plan: Optional[InstallmentPlan] = None
    payment_name: str = ""
    payment_transaction_code: str = ""
    is_draft: bool = False
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None
    cancellation_reason: Optional[str] = None
    id: UUID = field(default_factory=uuid4)
    version: int = 1
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if self.remaining_cents is None:
            self.remaining_cents = self.total_cents

    @property
    def seller_id(self) -> Optional[str]:
        """The seller derived from the first line item's snapshot."""
        if not self.items:
            return None
        return self.items[0].snapshot.shop_id or None

    @property
    def primary_product_id(self) -> Optional[UUID]:
        return self.items[0].product_id if self.items else None

    def sync_amounts(self) -> None:
        """Mirror the plan aggregates onto the order."""
        if self.installment_plan is None:
            return
        self.installment_plan.recompute_aggregates()
        self.paid_cents = self.installment_plan.amount_paid_cents
        self.remaining_cents = self.installment_plan.remaining_cents
