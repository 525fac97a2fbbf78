"""Outbox relay - drains pending notifications to the dispatcher."""

from dataclasses import dataclass

import structlog

from installment_gateway.core.metrics import record_notification_delivery
from installment_gateway.domain.interfaces import (
    NotificationDispatcher,
    NotificationRepository,
)

logger = structlog.get_logger(__name__)


@dataclass
class RelayReport:
    sent: int = 0
    retrying: int = 0
    failed: int = 0


class NotificationRelay:
    """
    Delivers outbox notifications independently of the business
    transition that produced them.

    A notification that keeps failing is retried on later passes until
    it reaches ``max_attempts``, then marked failed.
    """

    def __init__(
        self,
        notification_repository: NotificationRepository,
        dispatcher: NotificationDispatcher,
        max_attempts: int = 5,
        batch_size: int = 100,
    ):
        self._notification_repo = notification_repository
        self._dispatcher = dispatcher
        self._max_attempts = max_attempts
        self._batch_size = batch_size

    async def run(self) -> RelayReport:
        report = RelayReport()
        pending = await self._notification_repo.get_pending(limit=self._batch_size)

        for notification in pending:
            try:
                delivered = await self._dispatcher.dispatch(notification)
            except Exception as e:
                logger.error(
                    "notification_relay_error",
                    notification_id=str(notification.id),
                    error=str(e),
                )
                delivered = False

            if delivered:
                notification.mark_sent()
                report.sent += 1
            elif notification.attempts + 1 >= self._max_attempts:
                notification.mark_failed()
                report.failed += 1
                logger.error(
                    "notification_delivery_failed",
                    notification_id=str(notification.id),
                    type=notification.type.value,
                    attempts=notification.attempts,
                )
            else:
                notification.mark_retrying()
                report.retrying += 1

            record_notification_delivery(notification.status.value)
            await self._notification_repo.update(notification)

        if pending:
            logger.info(
                "notification_relay_completed",
                sent=report.sent,
                retrying=report.retrying,
                failed=report.failed,
            )
        return report
