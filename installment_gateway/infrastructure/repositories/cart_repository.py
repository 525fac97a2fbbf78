"""SQL implementation of CartRepository."""

from uuid import UUID

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from installment_gateway.domain.interfaces import CartRepository
from installment_gateway.infrastructure.database.models import CartItemModel


class SqlCartRepository(CartRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def remove_product(self, customer_id: str, product_id: UUID) -> int:
        stmt = delete(CartItemModel).where(
            CartItemModel.user_id == customer_id,
            CartItemModel.product_id == str(product_id),
        )
        result = await self._session.execute(stmt)
        return result.rowcount
