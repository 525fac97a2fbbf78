"""HTTP implementation of NotificationDispatcher."""

import asyncio

import httpx
import structlog

from installment_gateway.core.config import settings
from installment_gateway.core.metrics import track_notification_latency
from installment_gateway.domain.entities import Notification
from installment_gateway.domain.interfaces import NotificationDispatcher

logger = structlog.get_logger(__name__)


class HttpNotificationDispatcher(NotificationDispatcher):
    """
    HTTP transport for notifications.

    POSTs the notification payload with retry logic and exponential
    backoff. The outbox relay decides what to do when this gives up.
    """

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
    ):
        self._url = url or settings.notification_webhook_url
        self._timeout = timeout or settings.notification_webhook_timeout
        self._max_retries = max_retries or settings.notification_max_retries

    async def dispatch(self, notification: Notification) -> bool:
        """
        Send a notification.

        Uses exponential backoff: 0.1s, 0.2s, 0.4s, ...
        """
        payload = notification.to_payload()
        notification_type = notification.type.value

        for attempt in range(self._max_retries):
            try:
                with track_notification_latency():
                    async with httpx.AsyncClient(timeout=self._timeout) as client:
                        response = await client.post(
                            self._url,
                            json=payload,
                            headers={"Content-Type": "application/json"},
                        )

                        if response.status_code < 400:
                            logger.info(
                                "notification_dispatched",
                                notification_id=str(notification.id),
                                type=notification_type,
                                status_code=response.status_code,
                            )
                            return True

                        logger.warning(
                            "notification_dispatch_failed",
                            notification_id=str(notification.id),
                            type=notification_type,
                            status_code=response.status_code,
                            attempt=attempt + 1,
                            response=response.text[:200],
                        )

            except httpx.TimeoutException:
                logger.warning(
                    "notification_dispatch_timeout",
                    notification_id=str(notification.id),
                    type=notification_type,
                    attempt=attempt + 1,
                )
            except Exception as e:
                logger.error(
                    "notification_dispatch_error",
                    notification_id=str(notification.id),
                    type=notification_type,
                    attempt=attempt + 1,
                    error=str(e),
                )

            if attempt < self._max_retries - 1:
                await asyncio.sleep(2**attempt * 0.1)

        logger.error(
            "notification_dispatch_exhausted_retries",
            notification_id=str(notification.id),
            type=notification_type,
            max_retries=self._max_retries,
        )
        return False
