"""SQL implementation of OrderRepository."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, case, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from installment_gateway.domain.entities import (
    CustomerOrderHistory,
    InstallmentPlan,
    Order,
    OrderItem,
    OrderItemSnapshot,
    OrderStatus,
    PaymentType,
    SALES_COUNTED_STATUSES,
    SWEEPABLE_ORDER_STATUSES,
    SellerInstallmentSummary,
    StatusAggregate,
)
from installment_gateway.domain.exceptions import ConcurrentModificationException
from installment_gateway.domain.interfaces import OrderRepository
from installment_gateway.infrastructure.database.models import OrderItemModel, OrderModel
from installment_gateway.service.installments import ensure_utc, utcnow


class SqlOrderRepository(OrderRepository):
    """
    SQLAlchemy implementation of the Order repository.

    Updates are conditional on the stored version: the row is only
    written if nobody else committed a change since it was read.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def add(self, order: Order) -> Order:
        """Persist a new order with its line items."""
        model = OrderModel(
            id=str(order.id),
            customer_id=order.customer_id,
            seller_id=order.seller_id,
            status=order.status.value,
            payment_type=order.payment_type.value,
            is_draft=order.is_draft,
            total_cents=order.total_cents,
            paid_cents=order.paid_cents,
            remaining_cents=order.remaining_cents,
            overdue_count=self._overdue_count(order),
            sale_confirmed_at=self._sale_confirmed_at(order),
            installment_plan=self._plan_document(order),
            payment_name=order.payment_name,
            payment_transaction_code=order.payment_transaction_code,
            cancelled_at=order.cancelled_at,
            cancelled_by=order.cancelled_by,
            cancellation_reason=order.cancellation_reason,
            version=order.version,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )

        for position, item in enumerate(order.items):
            model.items.append(
                OrderItemModel(
                    position=position,
                    product_id=str(item.product_id),
                    quantity=item.quantity,
                    snapshot=item.snapshot.to_dict(),
                )
            )

        self._session.add(model)
        await self._session.flush()

        return order

    async def update(self, order: Order) -> Order:
        """
        Write the order if its version is still the one that was read.

        Line items are immutable after creation and are not rewritten.
        """
        expected_version = order.version
        updated_at = utcnow()

        stmt = (
            update(OrderModel)
            .where(
                OrderModel.id == str(order.id),
                OrderModel.version == expected_version,
            )
            .values(
                status=order.status.value,
                paid_cents=order.paid_cents,
                remaining_cents=order.remaining_cents,
                overdue_count=self._overdue_count(order),
                sale_confirmed_at=self._sale_confirmed_at(order),
                installment_plan=self._plan_document(order),
                cancelled_at=order.cancelled_at,
                cancelled_by=order.cancelled_by,
                cancellation_reason=order.cancellation_reason,
                version=expected_version + 1,
                updated_at=updated_at,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)

        if result.rowcount == 0:
            raise ConcurrentModificationException(str(order.id), expected_version)

        order.version = expected_version + 1
        order.updated_at = updated_at

        return order

    async def get_by_id(self, order_id: UUID) -> Optional[Order]:
        """Retrieve an order by ID."""
        stmt = self._select().where(OrderModel.id == str(order_id))
        return await self._one_or_none(stmt)

    async def get_installment_order_for_customer(
        self,
        order_id: UUID,
        customer_id: str,
    ) -> Optional[Order]:
        stmt = self._select_installments().where(
            OrderModel.id == str(order_id),
            OrderModel.customer_id == customer_id,
        )
        return await self._one_or_none(stmt)

    async def get_installment_order_for_seller(
        self,
        order_id: UUID,
        seller_id: str,
    ) -> Optional[Order]:
        stmt = self._select_installments().where(
            OrderModel.id == str(order_id),
            OrderModel.seller_id == seller_id,
        )
        return await self._one_or_none(stmt)

    async def list_sweepable(self) -> List[Order]:
        """Confirmed installment orders that are active or overdue."""
        stmt = (
            self._select_installments()
            .where(
                OrderModel.status.in_([s.value for s in SWEEPABLE_ORDER_STATUSES]),
                OrderModel.sale_confirmed_at.is_not(None),
            )
            .order_by(OrderModel.created_at.asc())
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars().all()]

    async def get_customer_history(self, customer_id: str) -> CustomerOrderHistory:
        """Aggregate counts over the customer's non-draft orders."""
        is_installment = OrderModel.payment_type == PaymentType.INSTALLMENT.value

        stmt = select(
            func.count(OrderModel.id),
            func.sum(
                case(
                    (
                        OrderModel.status.in_(
                            [OrderStatus.DELIVERED.value, OrderStatus.COMPLETED.value]
                        ),
                        1,
                    ),
                    else_=0,
                )
            ),
            func.sum(
                case((OrderModel.status == OrderStatus.CANCELLED.value, 1), else_=0)
            ),
            func.sum(
                case(
                    (
                        and_(
                            is_installment,
                            OrderModel.status == OrderStatus.COMPLETED.value,
                        ),
                        1,
                    ),
                    else_=0,
                )
            ),
            func.sum(
                case(
                    (
                        and_(
                            is_installment,
                            OrderModel.status == OrderStatus.OVERDUE_INSTALLMENT.value,
                        ),
                        1,
                    ),
                    else_=0,
                )
            ),
        ).where(
            OrderModel.customer_id == customer_id,
            OrderModel.is_draft.is_(False),
        )

        row = (await self._session.execute(stmt)).one()
        total, delivered, cancelled, completed, overdue = row

        return CustomerOrderHistory(
            total_orders=int(total or 0),
            delivered_orders=int(delivered or 0),
            cancelled_orders=int(cancelled or 0),
            completed_installments=int(completed or 0),
            overdue_installments=int(overdue or 0),
        )

    async def get_seller_summary(self, seller_id: str) -> SellerInstallmentSummary:
        """Counts and sums of the seller's installment orders by status."""
        at_risk = or_(
            OrderModel.status == OrderStatus.OVERDUE_INSTALLMENT.value,
            OrderModel.overdue_count > 0,
        )

        stmt = (
            select(
                OrderModel.status,
                func.count(OrderModel.id),
                func.coalesce(func.sum(OrderModel.total_cents), 0),
                func.coalesce(func.sum(OrderModel.paid_cents), 0),
                func.coalesce(func.sum(OrderModel.remaining_cents), 0),
                func.coalesce(
                    func.sum(case((at_risk, OrderModel.remaining_cents), else_=0)),
                    0,
                ),
            )
            .where(
                OrderModel.seller_id == seller_id,
                OrderModel.payment_type == PaymentType.INSTALLMENT.value,
                OrderModel.is_draft.is_(False),
            )
            .group_by(OrderModel.status)
            .order_by(OrderModel.status)
        )

        result = await self._session.execute(stmt)
        rows = [
            StatusAggregate(
                status=status,
                orders=int(orders),
                total_cents=int(total),
                paid_cents=int(paid),
                remaining_cents=int(remaining),
                risk_exposure_cents=int(exposure),
            )
            for status, orders, total, paid, remaining, exposure in result.all()
        ]

        return SellerInstallmentSummary(seller_id=seller_id, by_status=rows)

    async def count_product_sales(self, product_id: UUID) -> int:
        """Units of the product sold through orders that count as sales."""
        stmt = (
            select(func.coalesce(func.sum(OrderItemModel.quantity), 0))
            .join(OrderModel, OrderModel.id == OrderItemModel.order_id)
            .where(
                OrderItemModel.product_id == str(product_id),
                OrderModel.status.in_([s.value for s in SALES_COUNTED_STATUSES]),
                OrderModel.is_draft.is_(False),
            )
        )
        result = await self._session.execute(stmt)
        return int(result.scalar_one())

    def _select(self):
        return (
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .execution_options(populate_existing=True)
        )

    def _select_installments(self):
        return self._select().where(
            OrderModel.payment_type == PaymentType.INSTALLMENT.value,
            OrderModel.is_draft.is_(False),
        )

    async def _one_or_none(self, stmt) -> Optional[Order]:
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None

        return self._to_entity(model)

    @staticmethod
    def _overdue_count(order: Order) -> int:
        plan = order.installment_plan
        return plan.overdue_count if plan else 0

    @staticmethod
    def _sale_confirmed_at(order: Order):
        plan = order.installment_plan
        return plan.sale_confirmed_at if plan else None

    @staticmethod
    def _plan_document(order: Order) -> Optional[dict]:
        plan = order.installment_plan
        return plan.to_dict() if plan else None

    def _to_entity(self, model: OrderModel) -> Order:
        """Convert database model to domain entity."""
        items = [
            OrderItem(
                product_id=UUID(str(item.product_id)),
                quantity=item.quantity,
                snapshot=OrderItemSnapshot.from_dict(item.snapshot),
            )
            for item in model.items
        ]

        plan = None
        if model.installment_plan:
            plan = InstallmentPlan.from_dict(model.installment_plan)

        return Order(
            id=UUID(str(model.id)),
            customer_id=model.customer_id,
            items=items,
            total_cents=model.total_cents,
            status=OrderStatus(model.status),
            payment_type=PaymentType(model.payment_type),
            paid_cents=model.paid_cents,
            remaining_cents=model.remaining_cents,
            installment_plan=plan,
            payment_name=model.payment_name,
            payment_transaction_code=model.payment_transaction_code,
            is_draft=model.is_draft,
            cancelled_at=ensure_utc(model.cancelled_at),
            cancelled_by=model.cancelled_by,
            cancellation_reason=model.cancellation_reason,
            version=model.version,
            created_at=ensure_utc(model.created_at),
            updated_at=ensure_utc(model.updated_at),
        )
