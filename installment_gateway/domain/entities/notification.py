"""Notification entity persisted in the outbox before delivery."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4


class NotificationStatus(str, Enum):
    """Delivery status of an outbox notification."""

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
    RETRYING = "retrying"


class NotificationType(str, Enum):
    """Notification types emitted by the installment engine."""

    ORDER_CREATED = "order_created"
    SALE_CONFIRMATION_REQUIRED = "installment_sale_confirmation_required"
    SALE_CONFIRMED = "installment_sale_confirmed"
    SALE_REJECTED = "installment_sale_rejected"
    PAYMENT_SUBMITTED = "installment_payment_submitted"
    PAYMENT_VALIDATED = "installment_payment_validated"
    PAYMENT_REJECTED = "installment_payment_rejected"
    PLAN_COMPLETED = "installment_completed"
    OVERDUE_WARNING = "installment_overdue_warning"
    DUE_REMINDER = "installment_due_reminder"
    PRODUCT_SUSPENDED = "installment_product_suspended"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Notification:
    """
    A message for one recipient, written synchronously with the state
    change that caused it and drained asynchronously by the relay.
    """

    recipient_id: str
    actor_id: str
    type: NotificationType
    metadata: dict[str, Any] = field(default_factory=dict)
    product_id: Optional[UUID] = None
    id: UUID = field(default_factory=uuid4)
    status: NotificationStatus = NotificationStatus.PENDING
    attempts: int = 0
    last_attempt_at: datetime | None = None
    created_at: datetime = field(default_factory=_utcnow)

    def mark_sent(self) -> None:
        """Mark the notification as delivered."""
        self.status = NotificationStatus.SENT
        self.attempts += 1
        self.last_attempt_at = _utcnow()

    def mark_failed(self) -> None:
        """Mark the notification as failed after all attempts are exhausted."""
        self.status = NotificationStatus.FAILED
        self.attempts += 1
        self.last_attempt_at = _utcnow()

    def mark_retrying(self) -> None:
        """Mark the notification for another delivery attempt."""
        self.status = NotificationStatus.RETRYING
        self.attempts += 1
        self.last_attempt_at = _utcnow()

    def to_payload(self) -> dict:
        """Body sent to the notification dispatcher."""
        return {
            "notification_id": str(self.id),
            "recipient": self.recipient_id,
            "actor": self.actor_id,
            "type": self.type.value,
            "product_id": str(self.product_id) if self.product_id else None,
            "metadata": self.metadata,
            "created_at": self.created_at.isoformat(),
        }
