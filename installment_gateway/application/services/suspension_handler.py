"""Catalog-side reaction to plans that keep missing payments."""

from datetime import datetime
from typing import Callable

import structlog

from installment_gateway.application.services.notifier import OutboxNotifier
from installment_gateway.core.metrics import record_product_suspended
from installment_gateway.domain.entities import NotificationType, OverdueTranchesDetected
from installment_gateway.domain.interfaces import ProductRepository
from installment_gateway.service.installments import utcnow

logger = structlog.get_logger(__name__)


class ProductSuspensionHandler:
    """
    Suspends a product's installment offer once a plan on it reaches
    the product's missed-payment threshold.

    Re-reads the product and acts only if installments are still
    enabled, so replaying the same event is a no-op.
    """

    def __init__(
        self,
        product_repository: ProductRepository,
        notifier: OutboxNotifier,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._product_repo = product_repository
        self._notifier = notifier
        self._clock = clock

    async def __call__(self, event: OverdueTranchesDetected) -> bool:
        """
        Handle the event.

        Returns:
            True if this call suspended the product
        """
        product = await self._product_repo.get_by_id(event.product_id)
        if product is None or not product.installment.enabled:
            return False
        if event.overdue_count < product.installment.max_missed_payments:
            return False

        suspended_at = self._clock()
        suspended = await self._product_repo.suspend_installments(product.id, suspended_at)
        if not suspended:
            return False

        record_product_suspended()
        logger.warning(
            "product_installments_suspended",
            product_id=str(product.id),
            seller_id=product.seller_id,
            order_id=str(event.order_id),
            overdue_count=event.overdue_count,
            max_missed_payments=product.installment.max_missed_payments,
        )

        await self._notifier.notify(
            recipient_id=product.seller_id,
            actor_id=event.seller_id or product.seller_id,
            type=NotificationType.PRODUCT_SUSPENDED,
            product_id=product.id,
            metadata={
                "product_id": str(product.id),
                "product_title": product.title,
                "order_id": str(event.order_id),
                "overdue_count": event.overdue_count,
                "message": (
                    "Installment payment was suspended automatically after "
                    "repeated missed payments."
                ),
            },
        )
        return True
