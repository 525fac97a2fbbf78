"""Data transfer objects for installment orders."""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from installment_gateway.domain.entities import Order, Tranche


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class TransactionProofDTO:
    sender_name: str
    transaction_code: str
    amount_cents: int
    submitted_at: str


@dataclass(frozen=True)
class TrancheDTO:
    """Single tranche within an order response, addressed by its index."""

    index: int
    due_date: str
    amount_cents: int
    status: str
    penalty_cents: int
    is_down_payment: bool
    transaction_proof: Optional[TransactionProofDTO]
    validated_at: Optional[str]
    paid_at: Optional[str]

    @classmethod
    def from_entity(cls, index: int, tranche: Tranche) -> "TrancheDTO":
        proof = tranche.transaction_proof
        return cls(
            index=index,
            due_date=tranche.due_date.isoformat(),
            amount_cents=tranche.amount_cents,
            status=tranche.status.value,
            penalty_cents=tranche.penalty_cents,
            is_down_payment=tranche.is_down_payment,
            transaction_proof=(
                TransactionProofDTO(
                    sender_name=proof.sender_name,
                    transaction_code=proof.transaction_code,
                    amount_cents=proof.amount_cents,
                    submitted_at=proof.submitted_at.isoformat(),
                )
                if proof
                else None
            ),
            validated_at=_iso(tranche.validated_at),
            paid_at=_iso(tranche.paid_at),
        )


@dataclass(frozen=True)
class InstallmentProgressDTO:
    total_cents: int
    paid_cents: int
    remaining_cents: int
    progress: int


@dataclass(frozen=True)
class InstallmentPlanDTO:
    eligibility_score: int
    risk_level: str
    late_penalty_rate: float
    first_payment_min_cents: int
    amount_paid_cents: int
    remaining_cents: int
    total_penalty_cents: int
    overdue_count: int
    next_due_date: Optional[str]
    sale_confirmed_at: Optional[str]
    guarantor_required: bool
    schedule: List[TrancheDTO]


@dataclass(frozen=True)
class OrderItemDTO:
    product_id: str
    quantity: int
    title: str
    price_cents: int
    shop_id: str
    shop_name: str
    image: Optional[str]
    slug: Optional[str]


@dataclass(frozen=True)
class OrderResponse:
    """Response data for an installment order with its schedule."""

    order_id: str
    customer_id: str
    seller_id: Optional[str]
    status: str
    payment_type: str
    total_cents: int
    paid_cents: int
    remaining_cents: int
    version: int
    items: List[OrderItemDTO]
    installment_plan: Optional[InstallmentPlanDTO]
    installment_progress: Optional[InstallmentProgressDTO]
    cancellation_reason: Optional[str]
    created_at: str

    @classmethod
    def from_entity(cls, order: Order) -> "OrderResponse":
        items = [
            OrderItemDTO(
                product_id=str(item.product_id),
                quantity=item.quantity,
                title=item.snapshot.title,
                price_cents=item.snapshot.price_cents,
                shop_id=item.snapshot.shop_id,
                shop_name=item.snapshot.shop_name,
                image=item.snapshot.image,
                slug=item.snapshot.slug,
            )
            for item in order.items
        ]

        plan_dto = None
        progress_dto = None
        plan = order.installment_plan
        if plan is not None:
            plan_dto = InstallmentPlanDTO(
                eligibility_score=plan.eligibility_score,
                risk_level=plan.risk_level.value,
                late_penalty_rate=plan.late_penalty_rate,
                first_payment_min_cents=plan.first_payment_min_cents,
                amount_paid_cents=plan.amount_paid_cents,
                remaining_cents=plan.remaining_cents,
                total_penalty_cents=plan.total_penalty_cents,
                overdue_count=plan.overdue_count,
                next_due_date=_iso(plan.next_due_date),
                sale_confirmed_at=_iso(plan.sale_confirmed_at),
                guarantor_required=bool(plan.guarantor and plan.guarantor.required),
                schedule=[
                    TrancheDTO.from_entity(index, tranche)
                    for index, tranche in enumerate(plan.schedule)
                ],
            )
            progress_dto = InstallmentProgressDTO(**plan.progress())

        return cls(
            order_id=str(order.id),
            customer_id=order.customer_id,
            seller_id=order.seller_id,
            status=order.status.value,
            payment_type=order.payment_type.value,
            total_cents=order.total_cents,
            paid_cents=order.paid_cents,
            remaining_cents=order.remaining_cents,
            version=order.version,
            items=items,
            installment_plan=plan_dto,
            installment_progress=progress_dto,
            cancellation_reason=order.cancellation_reason,
            created_at=order.created_at.isoformat(),
        )
