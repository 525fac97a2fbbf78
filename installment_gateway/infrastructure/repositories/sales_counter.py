"""Sales counter recomputation backed by the order and product tables."""

from uuid import UUID

import structlog

from installment_gateway.domain.interfaces import (
    OrderRepository,
    ProductRepository,
    SalesCounterService,
)

logger = structlog.get_logger(__name__)


class SqlSalesCounterService(SalesCounterService):
    """Recomputes ``products.sales_count`` from the orders that count as sales."""

    def __init__(self, order_repo: OrderRepository, product_repo: ProductRepository):
        self._order_repo = order_repo
        self._product_repo = product_repo

    async def recompute(self, product_id: UUID) -> int:
        sales_count = await self._order_repo.count_product_sales(product_id)
        await self._product_repo.update_sales_count(product_id, sales_count)

        logger.info(
            "sales_count_recomputed",
            product_id=str(product_id),
            sales_count=sales_count,
        )
        return sales_count
