"""Analytics service - per-seller installment aggregates."""

import structlog

from installment_gateway.application.dto import SellerAnalyticsResponse
from installment_gateway.domain.interfaces import OrderRepository

logger = structlog.get_logger(__name__)


class AnalyticsService:
    def __init__(self, order_repository: OrderRepository):
        self._order_repo = order_repository

    async def get_seller_analytics(self, seller_id: str) -> SellerAnalyticsResponse:
        summary = await self._order_repo.get_seller_summary(seller_id)

        logger.info(
            "seller_analytics_retrieved",
            seller_id=seller_id,
            total_installment_sales=summary.total_installment_sales,
        )

        return SellerAnalyticsResponse.from_summary(summary)
