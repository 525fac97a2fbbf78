"""Best-effort notification enqueueing into the outbox."""

from typing import Any, Optional
from uuid import UUID

import structlog

from installment_gateway.core.metrics import record_notification_enqueue_failure
from installment_gateway.domain.entities import Notification, NotificationType
from installment_gateway.domain.interfaces import NotificationRepository

logger = structlog.get_logger(__name__)


class OutboxNotifier:
    """
    Writes notifications to the outbox next to the state change.

    A failed write is logged and counted but never propagates: the
    state transition that triggered the notification stays committed.
    """

    def __init__(self, notification_repository: NotificationRepository):
        self._notification_repo = notification_repository

    async def notify(
        self,
        recipient_id: Optional[str],
        actor_id: str,
        type: NotificationType,
        metadata: dict[str, Any],
        product_id: Optional[UUID] = None,
    ) -> bool:
        """
        Enqueue a notification.

        Returns:
            True if the notification was written to the outbox
        """
        if not recipient_id:
            logger.warning("notification_skipped_no_recipient", type=type.value)
            return False

        notification = Notification(
            recipient_id=recipient_id,
            actor_id=actor_id,
            type=type,
            metadata=metadata,
            product_id=product_id,
        )

        try:
            await self._notification_repo.add(notification)
        except Exception as e:
            record_notification_enqueue_failure()
            logger.error(
                "notification_enqueue_failed",
                type=type.value,
                recipient_id=recipient_id,
                error=str(e),
            )
            return False

        return True
