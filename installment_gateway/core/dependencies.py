"""Dependency injection for FastAPI."""

from datetime import datetime
from typing import Annotated, Callable, Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from installment_gateway.application.services import (
    AnalyticsService,
    DomainEventBus,
    EligibilityService,
    NotificationRelay,
    OutboxNotifier,
    PlanLifecycleService,
    ProductConfigService,
    ProductSuspensionHandler,
    ReconciliationSweeper,
)
from installment_gateway.core.config import settings
from installment_gateway.domain.entities import OverdueTranchesDetected
from installment_gateway.domain.exceptions import UnauthenticatedException
from installment_gateway.domain.interfaces import (
    NotificationDispatcher,
    RestrictionClient,
)
from installment_gateway.infrastructure.clients import (
    HttpNotificationDispatcher,
    HttpRestrictionClient,
)
from installment_gateway.infrastructure.database import get_db_session
from installment_gateway.infrastructure.repositories import (
    SqlCartRepository,
    SqlNotificationRepository,
    SqlOrderRepository,
    SqlProductRepository,
    SqlSalesCounterService,
)
from installment_gateway.service.installments import utcnow

Clock = Callable[[], datetime]


# Caller identity and time
async def get_current_user_id(
    x_user_id: Annotated[Optional[str], Header(alias="X-User-ID")] = None,
) -> str:
    """Caller identity set by the upstream auth layer."""
    if not x_user_id or not x_user_id.strip():
        raise UnauthenticatedException()
    return x_user_id.strip()


def get_clock() -> Clock:
    """Get the clock used to judge due dates and lateness."""
    return utcnow


# Repository dependencies
async def get_order_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> SqlOrderRepository:
    """Get an OrderRepository instance."""
    return SqlOrderRepository(session)


async def get_product_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> SqlProductRepository:
    """Get a ProductRepository instance."""
    return SqlProductRepository(session)


async def get_cart_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> SqlCartRepository:
    return SqlCartRepository(session)


async def get_notification_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> SqlNotificationRepository:
    return SqlNotificationRepository(session)


# External client dependencies
def get_restriction_client() -> RestrictionClient:
    """Get a RestrictionClient instance."""
    return HttpRestrictionClient()


def get_notification_dispatcher() -> NotificationDispatcher:
    """Get a NotificationDispatcher instance."""
    return HttpNotificationDispatcher()


# Service builders, shared by request dependencies and background jobs
def build_reconciliation_sweeper(session: AsyncSession, clock: Clock = utcnow) -> ReconciliationSweeper:
    """Wire a sweeper, its event bus and the suspension handler on one session."""
    notifier = OutboxNotifier(SqlNotificationRepository(session))
    event_bus = DomainEventBus()
    event_bus.subscribe(
        OverdueTranchesDetected,
        ProductSuspensionHandler(SqlProductRepository(session), notifier, clock=clock),
    )
    return ReconciliationSweeper(
        order_repository=SqlOrderRepository(session),
        notifier=notifier,
        event_bus=event_bus,
        clock=clock,
    )


def build_notification_relay(
    session: AsyncSession,
    dispatcher: NotificationDispatcher,
) -> NotificationRelay:
    return NotificationRelay(
        notification_repository=SqlNotificationRepository(session),
        dispatcher=dispatcher,
        max_attempts=settings.notification_max_attempts,
        batch_size=settings.notification_relay_batch_size,
    )


# Service dependencies
async def get_plan_service(
    order_repo: Annotated[SqlOrderRepository, Depends(get_order_repository)],
    product_repo: Annotated[SqlProductRepository, Depends(get_product_repository)],
    cart_repo: Annotated[SqlCartRepository, Depends(get_cart_repository)],
    notification_repo: Annotated[
        SqlNotificationRepository, Depends(get_notification_repository)
    ],
    restriction_client: Annotated[RestrictionClient, Depends(get_restriction_client)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> PlanLifecycleService:
    """Get a PlanLifecycleService instance with all dependencies."""
    return PlanLifecycleService(
        order_repository=order_repo,
        product_repository=product_repo,
        cart_repository=cart_repo,
        restriction_client=restriction_client,
        sales_counter=SqlSalesCounterService(order_repo, product_repo),
        notifier=OutboxNotifier(notification_repo),
        clock=clock,
    )


async def get_eligibility_service(
    order_repo: Annotated[SqlOrderRepository, Depends(get_order_repository)],
) -> EligibilityService:
    return EligibilityService(order_repository=order_repo)


async def get_analytics_service(
    order_repo: Annotated[SqlOrderRepository, Depends(get_order_repository)],
) -> AnalyticsService:
    return AnalyticsService(order_repository=order_repo)


async def get_product_config_service(
    product_repo: Annotated[SqlProductRepository, Depends(get_product_repository)],
) -> ProductConfigService:
    return ProductConfigService(product_repository=product_repo)


async def get_reconciliation_sweeper(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> ReconciliationSweeper:
    """Get a ReconciliationSweeper for an on-demand pass."""
    return build_reconciliation_sweeper(session, clock=clock)
