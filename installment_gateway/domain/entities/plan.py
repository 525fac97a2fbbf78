"""Installment plan domain entities.

The plan is embedded in its order: tranches are never addressed on
their own, only by their stable position in the schedule.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from installment_gateway.domain.exceptions import TrancheNotFoundException


class TrancheStatus(str, Enum):
    PENDING = "pending"
    PROOF_UPLOADED = "proof_uploaded"
    PAID = "paid"
    OVERDUE = "overdue"
    WAIVED = "waived"


RESOLVED_TRANCHE_STATUSES = frozenset({TrancheStatus.PAID, TrancheStatus.WAIVED})
OPEN_TRANCHE_STATUSES = frozenset(
    {TrancheStatus.PENDING, TrancheStatus.PROOF_UPLOADED, TrancheStatus.OVERDUE}
)


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


@dataclass
class TransactionProof:
    """A buyer's claim of an external transfer; never verified by a gateway."""

    sender_name: str
    transaction_code: str
    amount_cents: int
    submitted_at: datetime
    submitted_by: str

    def to_dict(self) -> dict:
        return {
            "sender_name": self.sender_name,
            "transaction_code": self.transaction_code,
            "amount_cents": self.amount_cents,
            "submitted_at": _iso(self.submitted_at),
            "submitted_by": self.submitted_by,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TransactionProof":
        return cls(
            sender_name=data["sender_name"],
            transaction_code=data["transaction_code"],
            amount_cents=int(data["amount_cents"]),
            submitted_at=_parse(data["submitted_at"]),
            submitted_by=data["submitted_by"],
        )


@dataclass
class Guarantor:
    """Person vouching for the buyer, collected when the product demands it."""

    full_name: str = ""
    phone: str = ""
    relation: str = ""
    address: str = ""
    national_id: str = ""
    required: bool = False

    REQUIRED_FIELDS = ("full_name", "phone", "relation", "address")

    def missing_fields(self) -> List[str]:
        return [name for name in self.REQUIRED_FIELDS if not getattr(self, name).strip()]

    def to_dict(self) -> dict:
        return {
            "full_name": self.full_name,
            "phone": self.phone,
            "relation": self.relation,
            "address": self.address,
            "national_id": self.national_id,
            "required": self.required,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Guarantor":
        return cls(
            full_name=data.get("full_name", ""),
            phone=data.get("phone", ""),
            relation=data.get("relation", ""),
            address=data.get("address", ""),
            national_id=data.get("national_id", ""),
            required=bool(data.get("required", False)),
        )


@dataclass
class Tranche:
    """A single scheduled partial payment. The amount is fixed at generation."""

    due_date: datetime
    amount_cents: int
    status: TrancheStatus = TrancheStatus.PENDING
    transaction_proof: Optional[TransactionProof] = None
    penalty_cents: int = 0
    is_down_payment: bool = False
    validated_by: Optional[str] = None
    validated_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    reminder_sent_at: Optional[datetime] = None
    overdue_notified_at: Optional[datetime] = None

    @property
    def is_resolved(self) -> bool:
        return self.status in RESOLVED_TRANCHE_STATUSES

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_TRANCHE_STATUSES

    @property
    def awaiting_validation(self) -> bool:
        """A proof is attached and the seller has not decided yet.

        The sweeper may have moved such a tranche to overdue; the proof
        stays attached.
        """
        return self.transaction_proof is not None and self.status in (
            TrancheStatus.PROOF_UPLOADED,
            TrancheStatus.OVERDUE,
        )

    @property
    def has_valid_proof(self) -> bool:
        proof = self.transaction_proof
        return proof is not None and bool(proof.sender_name) and bool(proof.transaction_code)

    def to_dict(self) -> dict:
        return {
            "due_date": _iso(self.due_date),
            "amount_cents": self.amount_cents,
            "status": self.status.value,
            "transaction_proof": (
                self.transaction_proof.to_dict() if self.transaction_proof else None
            ),
            "penalty_cents": self.penalty_cents,
            "is_down_payment": self.is_down_payment,
            "validated_by": self.validated_by,
            "validated_at": _iso(self.validated_at),
            "paid_at": _iso(self.paid_at),
            "reminder_sent_at": _iso(self.reminder_sent_at),
            "overdue_notified_at": _iso(self.overdue_notified_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Tranche":
        proof = data.get("transaction_proof")
        return cls(
            due_date=_parse(data["due_date"]),
            amount_cents=int(data["amount_cents"]),
            status=TrancheStatus(data.get("status", TrancheStatus.PENDING.value)),
            transaction_proof=TransactionProof.from_dict(proof) if proof else None,
            penalty_cents=int(data.get("penalty_cents", 0)),
            is_down_payment=bool(data.get("is_down_payment", False)),
            validated_by=data.get("validated_by"),
            validated_at=_parse(data.get("validated_at")),
            paid_at=_parse(data.get("paid_at")),
            reminder_sent_at=_parse(data.get("reminder_sent_at")),
            overdue_notified_at=_parse(data.get("overdue_notified_at")),
        )


@dataclass
class InstallmentPlan:
    """
    Installment-specific sub-record of an order.

    The cached aggregates (amount paid, remaining, penalties, overdue
    count, next due date) are always recomputable from the schedule;
    ``recompute_aggregates`` is the single place that derives them.
    """

    total_cents: int
    eligibility_score: int
    risk_level: RiskLevel
    late_penalty_rate: float = 0.0
    first_payment_min_cents: int = 0
    schedule: List[Tranche] = field(default_factory=list)
    amount_paid_cents: int = 0
    remaining_cents: Optional[int] = None
    total_penalty_cents: int = 0
    overdue_count: int = 0
    next_due_date: Optional[datetime] = None
    sale_confirmed_at: Optional[datetime] = None
    sale_confirmed_by: Optional[str] = None
    guarantor: Optional[Guarantor] = None

    def __post_init__(self) -> None:
        if self.remaining_cents is None:
            self.remaining_cents = self.total_cents

    @property
    def is_sale_confirmed(self) -> bool:
        return self.sale_confirmed_at is not None

    def tranche(self, index: int) -> Tranche:
        """Return the tranche at ``index`` or raise TrancheNotFoundException."""
        if index < 0 or index >= len(self.schedule):
            raise TrancheNotFoundException(index)
        return self.schedule[index]

    def first_unresolved_before(self, index: int) -> Optional[int]:
        """Index of the earliest tranche before ``index`` that is not paid or waived."""
        for position, entry in enumerate(self.schedule[:index]):
            if not entry.is_resolved:
                return position
        return None

    def compute_next_due_date(self) -> Optional[datetime]:
        due_dates = [entry.due_date for entry in self.schedule if entry.is_open]
        return min(due_dates) if due_dates else None

    def count_overdue(self) -> int:
        return sum(1 for entry in self.schedule if entry.status == TrancheStatus.OVERDUE)

    def recompute_aggregates(self) -> None:
        paid = [entry for entry in self.schedule if entry.status == TrancheStatus.PAID]
        settled_principal = sum(
            entry.amount_cents for entry in self.schedule if entry.is_resolved
        )
        self.total_penalty_cents = sum(entry.penalty_cents for entry in paid)
        self.amount_paid_cents = (
            sum(entry.amount_cents for entry in paid) + self.total_penalty_cents
        )
        self.remaining_cents = max(0, self.total_cents - settled_principal)
        self.overdue_count = self.count_overdue()
        self.next_due_date = self.compute_next_due_date()

    def progress(self) -> dict:
        total = self.total_cents
        progress = 0
        if total > 0:
            progress = min(100, round((total - self.remaining_cents) * 100 / total))
        return {
            "total_cents": total,
            "paid_cents": self.amount_paid_cents,
            "remaining_cents": self.remaining_cents,
            "progress": progress,
        }

    def to_dict(self) -> dict:
        return {
            "total_cents": self.total_cents,
            "eligibility_score": self.eligibility_score,
            "risk_level": self.risk_level.value,
            "late_penalty_rate": self.late_penalty_rate,
            "first_payment_min_cents": self.first_payment_min_cents,
            "schedule": [entry.to_dict() for entry in self.schedule],
            "amount_paid_cents": self.amount_paid_cents,
            "remaining_cents": self.remaining_cents,
            "total_penalty_cents": self.total_penalty_cents,
            "overdue_count": self.overdue_count,
            "next_due_date": _iso(self.next_due_date),
            "sale_confirmed_at": _iso(self.sale_confirmed_at),
            "sale_confirmed_by": self.sale_confirmed_by,
            "guarantor": self.guarantor.to_dict() if self.guarantor else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InstallmentPlan":
        guarantor = data.get("guarantor")
        return cls(
            total_cents=int(data["total_cents"]),
            eligibility_score=int(data["eligibility_score"]),
            risk_level=RiskLevel(data["risk_level"]),
            late_penalty_rate=float(data.get("late_penalty_rate", 0.0)),
            first_payment_min_cents=int(data.get("first_payment_min_cents", 0)),
            schedule=[Tranche.from_dict(entry) for entry in data.get("schedule", [])],
            amount_paid_cents=int(data.get("amount_paid_cents", 0)),
            remaining_cents=int(data.get("remaining_cents", data["total_cents"])),
            total_penalty_cents=int(data.get("total_penalty_cents", 0)),
            overdue_count=int(data.get("overdue_count", 0)),
            next_due_date=_parse(data.get("next_due_date")),
            sale_confirmed_at=_parse(data.get("sale_confirmed_at")),
            sale_confirmed_by=data.get("sale_confirmed_by"),
            guarantor=Guarantor.from_dict(guarantor) if guarantor else None,
        )
