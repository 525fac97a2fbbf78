"""SQL implementation of ProductRepository."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from installment_gateway.domain.entities import (
    Product,
    ProductInstallmentConfig,
    ProductStatus,
)
from installment_gateway.domain.exceptions import ProductNotFoundException
from installment_gateway.domain.interfaces import ProductRepository
from installment_gateway.infrastructure.database.models import ProductModel
from installment_gateway.service.installments import ensure_utc


class SqlProductRepository(ProductRepository):
    """Catalog reads plus the installment-related writes."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, product_id: UUID) -> Optional[Product]:
        stmt = (
            select(ProductModel)
            .where(ProductModel.id == str(product_id))
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None

        return self._to_entity(model)

    async def update_installment_config(
        self,
        product_id: UUID,
        config: ProductInstallmentConfig,
    ) -> None:
        stmt = (
            update(ProductModel)
            .where(ProductModel.id == str(product_id))
            .values(
                installment_enabled=config.enabled,
                installment_min_amount_cents=config.min_amount_cents,
                installment_duration_days=config.duration_days,
                installment_start_date=config.start_date,
                installment_end_date=config.end_date,
                installment_late_penalty_rate=config.late_penalty_rate,
                installment_max_missed_payments=config.max_missed_payments,
                installment_require_guarantor=config.require_guarantor,
                installment_suspended_at=config.suspended_at,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)

        if result.rowcount == 0:
            raise ProductNotFoundException(str(product_id))

    async def suspend_installments(self, product_id: UUID, suspended_at: datetime) -> bool:
        """
        Disable installments only if they are still enabled.

        The enabled check is part of the UPDATE so two concurrent
        suspensions cannot both report success.
        """
        stmt = (
            update(ProductModel)
            .where(
                ProductModel.id == str(product_id),
                ProductModel.installment_enabled.is_(True),
            )
            .values(
                installment_enabled=False,
                installment_suspended_at=suspended_at,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def update_sales_count(self, product_id: UUID, sales_count: int) -> None:
        stmt = (
            update(ProductModel)
            .where(ProductModel.id == str(product_id))
            .values(sales_count=sales_count)
            .execution_options(synchronize_session=False)
        )
        await self._session.execute(stmt)

    def _to_entity(self, model: ProductModel) -> Product:
        return Product(
            id=UUID(str(model.id)),
            seller_id=model.seller_id,
            title=model.title,
            price_cents=model.price_cents,
            status=ProductStatus(model.status),
            shop_name=model.shop_name,
            slug=model.slug,
            images=list(model.images or []),
            sales_count=model.sales_count,
            installment=ProductInstallmentConfig(
                enabled=model.installment_enabled,
                min_amount_cents=model.installment_min_amount_cents,
                duration_days=model.installment_duration_days,
                start_date=ensure_utc(model.installment_start_date),
                end_date=ensure_utc(model.installment_end_date),
                late_penalty_rate=model.installment_late_penalty_rate,
                max_missed_payments=model.installment_max_missed_payments,
                require_guarantor=model.installment_require_guarantor,
                suspended_at=ensure_utc(model.installment_suspended_at),
            ),
        )
