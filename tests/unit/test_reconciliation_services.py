"""
Unit Tests for the reconciliation services with in-memory repositories.

These tests verify:
1. ReconciliationSweeper notices, status derivation and conflict handling
2. ProductSuspensionHandler thresholds and idempotency
3. OutboxNotifier best-effort enqueueing
4. DomainEventBus dispatch
5. Error code mapping, users service payload parsing and HTTP endpoint labels
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import List, Optional
from uuid import UUID, uuid4

import pytest
from starlette.requests import Request

from installment_gateway.application.services import (
    DomainEventBus,
    OutboxNotifier,
    ProductSuspensionHandler,
    ReconciliationSweeper,
)
from installment_gateway.domain.entities import (
    InstallmentPlan,
    Notification,
    NotificationType,
    Order,
    OrderItem,
    OrderItemSnapshot,
    OrderStatus,
    OverdueTranchesDetected,
    Product,
    ProductInstallmentConfig,
    RiskLevel,
    Tranche,
    TrancheStatus,
    TransactionProof,
)
from installment_gateway.domain.exceptions import (
    AmountMismatchException,
    ConcurrentModificationException,
    DomainException,
    GuarantorRequiredException,
    InvalidStateTransitionException,
    SequentialGateException,
    TrancheNotFoundException,
    UnauthenticatedException,
)
from installment_gateway.infrastructure.clients import HttpRestrictionClient
from installment_gateway.presentation.middleware.error_handler import status_code_for
from installment_gateway.presentation.middleware.logging import _endpoint_label

CHECKOUT_TIME = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
SELLER_ID = "seller_1"
CUSTOMER_ID = "customer_1"


# =============================================================================
# Fakes
# =============================================================================

class InMemoryOrderRepository:
    """Order repository keeping orders in a dict, with a version check."""

    def __init__(self, orders: List[Order], conflict: bool = False):
        self.orders = {order.id: order for order in orders}
        self.conflict = conflict
        self.updates = 0

    async def list_sweepable(self) -> List[Order]:
        return [
            order
            for order in self.orders.values()
            if order.status
            in (OrderStatus.INSTALLMENT_ACTIVE, OrderStatus.OVERDUE_INSTALLMENT)
            and order.installment_plan is not None
            and order.installment_plan.is_sale_confirmed
        ]

    async def update(self, order: Order) -> Order:
        if self.conflict:
            raise ConcurrentModificationException(str(order.id), order.version)
        self.updates += 1
        order.version += 1
        return order


class InMemoryNotificationRepository:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.notifications: List[Notification] = []

    async def add(self, notification: Notification) -> Notification:
        if self.fail:
            raise RuntimeError("outbox table unavailable")
        self.notifications.append(notification)
        return notification

    def of_type(self, type: NotificationType) -> List[Notification]:
        return [n for n in self.notifications if n.type == type]


class InMemoryProductRepository:
    def __init__(self, product: Product):
        self.products = {product.id: product}

    async def get_by_id(self, product_id: UUID) -> Optional[Product]:
        return self.products.get(product_id)

    async def suspend_installments(self, product_id: UUID, suspended_at: datetime) -> bool:
        product = self.products.get(product_id)
        if product is None or not product.installment.enabled:
            return False
        product.installment = replace(
            product.installment,
            enabled=False,
            suspended_at=suspended_at,
        )
        return True


def make_confirmed_order(product_id: Optional[UUID] = None) -> Order:
    """Active order: down payment paid, tranches due on day 30 and day 60."""
    plan = InstallmentPlan(
        total_cents=5_000_000,
        eligibility_score=55,
        risk_level=RiskLevel.MEDIUM,
        late_penalty_rate=5.0,
        schedule=[
            Tranche(
                due_date=CHECKOUT_TIME,
                amount_cents=500_000,
                status=TrancheStatus.PAID,
                is_down_payment=True,
            ),
            Tranche(due_date=CHECKOUT_TIME + timedelta(days=30), amount_cents=2_250_000),
            Tranche(due_date=CHECKOUT_TIME + timedelta(days=60), amount_cents=2_250_000),
        ],
        sale_confirmed_at=CHECKOUT_TIME,
        sale_confirmed_by=SELLER_ID,
    )
    order = Order(
        customer_id=CUSTOMER_ID,
        items=[
            OrderItem(
                product_id=product_id or uuid4(),
                quantity=1,
                snapshot=OrderItemSnapshot(
                    title="Phone",
                    price_cents=5_000_000,
                    shop_id=SELLER_ID,
                ),
            )
        ],
        total_cents=5_000_000,
        status=OrderStatus.INSTALLMENT_ACTIVE,
        installment_plan=plan,
    )
    order.sync_amounts()
    return order


def make_product(max_missed_payments: int = 1) -> Product:
    return Product(
        seller_id=SELLER_ID,
        title="Phone",
        price_cents=5_000_000,
        installment=ProductInstallmentConfig(
            enabled=True,
            min_amount_cents=500_000,
            duration_days=60,
            start_date=datetime(2026, 1, 1, tzinfo=timezone.utc),
            end_date=datetime(2026, 3, 2, tzinfo=timezone.utc),
            late_penalty_rate=5.0,
            max_missed_payments=max_missed_payments,
        ),
    )


def build_sweeper(orders, now, conflict=False, event_bus=None):
    order_repo = InMemoryOrderRepository(orders, conflict=conflict)
    notification_repo = InMemoryNotificationRepository()
    sweeper = ReconciliationSweeper(
        order_repository=order_repo,
        notifier=OutboxNotifier(notification_repo),
        event_bus=event_bus or DomainEventBus(),
        clock=lambda: now,
    )
    return sweeper, order_repo, notification_repo


# =============================================================================
# Reconciliation Sweeper
# =============================================================================

class TestReconciliationSweeper:
    """Tests for ReconciliationSweeper.run."""

    @pytest.mark.asyncio
    async def test_flags_overdue_and_warns_both_parties(self):
        order = make_confirmed_order()
        now = CHECKOUT_TIME + timedelta(days=31)
        sweeper, order_repo, notifications = build_sweeper([order], now)

        report = await sweeper.run()

        assert report.processed_orders == 1
        assert report.overdue_warnings_sent == 1
        assert report.reminders_sent == 0
        assert order.status == OrderStatus.OVERDUE_INSTALLMENT
        assert order.installment_plan.schedule[1].status == TrancheStatus.OVERDUE
        assert order.installment_plan.schedule[1].overdue_notified_at == now
        assert order.installment_plan.overdue_count == 1
        assert order_repo.updates == 1

        warnings = notifications.of_type(NotificationType.OVERDUE_WARNING)
        assert {n.recipient_id for n in warnings} == {CUSTOMER_ID, SELLER_ID}
        assert warnings[0].metadata["tranche_index"] == 1

    @pytest.mark.asyncio
    async def test_second_pass_changes_nothing(self):
        order = make_confirmed_order()
        now = CHECKOUT_TIME + timedelta(days=31)
        sweeper, order_repo, notifications = build_sweeper([order], now)

        await sweeper.run()
        report = await sweeper.run()

        assert report.overdue_warnings_sent == 0
        assert order_repo.updates == 1
        assert len(notifications.notifications) == 2

    @pytest.mark.asyncio
    async def test_reminds_buyer_inside_horizon(self):
        order = make_confirmed_order()
        now = CHECKOUT_TIME + timedelta(days=28)
        sweeper, _, notifications = build_sweeper([order], now)

        report = await sweeper.run()

        assert report.reminders_sent == 1
        assert order.status == OrderStatus.INSTALLMENT_ACTIVE
        assert order.installment_plan.schedule[1].reminder_sent_at == now
        reminders = notifications.of_type(NotificationType.DUE_REMINDER)
        assert [n.recipient_id for n in reminders] == [CUSTOMER_ID]

    @pytest.mark.asyncio
    async def test_nothing_due_leaves_order_untouched(self):
        order = make_confirmed_order()
        sweeper, order_repo, notifications = build_sweeper(
            [order], CHECKOUT_TIME + timedelta(days=1)
        )

        report = await sweeper.run()

        assert report.processed_orders == 1
        assert order_repo.updates == 0
        assert notifications.notifications == []

    @pytest.mark.asyncio
    async def test_past_due_tranche_under_review_is_flagged_and_keeps_proof(self):
        order = make_confirmed_order()
        tranche = order.installment_plan.schedule[1]
        tranche.status = TrancheStatus.PROOF_UPLOADED
        tranche.transaction_proof = TransactionProof(
            sender_name="Ama Mensah",
            transaction_code="TX123",
            amount_cents=tranche.amount_cents,
            submitted_at=CHECKOUT_TIME + timedelta(days=29),
            submitted_by=CUSTOMER_ID,
        )
        sweeper, _, _ = build_sweeper([order], CHECKOUT_TIME + timedelta(days=31))

        report = await sweeper.run()

        assert report.overdue_warnings_sent == 1
        assert order.status == OrderStatus.OVERDUE_INSTALLMENT
        assert tranche.status == TrancheStatus.OVERDUE
        assert tranche.transaction_proof is not None
        assert tranche.awaiting_validation is True
        assert order.installment_plan.overdue_count == 1

    @pytest.mark.asyncio
    async def test_unvalidated_down_payment_is_flagged(self):
        order = make_confirmed_order()
        down_payment = order.installment_plan.schedule[0]
        down_payment.status = TrancheStatus.PENDING
        order.sync_amounts()
        sweeper, _, _ = build_sweeper([order], CHECKOUT_TIME + timedelta(days=1))

        await sweeper.run()

        assert down_payment.status == TrancheStatus.OVERDUE
        assert order.status == OrderStatus.OVERDUE_INSTALLMENT

    @pytest.mark.asyncio
    async def test_conflict_is_counted_and_skips_notices(self):
        order = make_confirmed_order()
        sweeper, _, notifications = build_sweeper(
            [order],
            CHECKOUT_TIME + timedelta(days=31),
            conflict=True,
        )

        report = await sweeper.run()

        assert report.conflicts == 1
        assert report.conflicted_order_ids == [str(order.id)]
        assert report.overdue_warnings_sent == 0
        assert notifications.notifications == []

    @pytest.mark.asyncio
    async def test_overdue_event_reports_suspensions(self):
        order = make_confirmed_order()
        events = []

        async def handler(event: OverdueTranchesDetected) -> bool:
            events.append(event)
            return True

        bus = DomainEventBus()
        bus.subscribe(OverdueTranchesDetected, handler)
        now = CHECKOUT_TIME + timedelta(days=31)
        sweeper, _, _ = build_sweeper([order], now, event_bus=bus)

        report = await sweeper.run()

        assert report.suspended_products == 1
        assert events[0].order_id == order.id
        assert events[0].product_id == order.primary_product_id
        assert events[0].overdue_count == 1
        assert events[0].occurred_at == now


# =============================================================================
# Product Suspension
# =============================================================================

def overdue_event(product: Product, overdue_count: int) -> OverdueTranchesDetected:
    return OverdueTranchesDetected(
        order_id=uuid4(),
        product_id=product.id,
        seller_id=SELLER_ID,
        customer_id=CUSTOMER_ID,
        overdue_count=overdue_count,
        occurred_at=CHECKOUT_TIME,
    )


class TestProductSuspensionHandler:
    """Tests for ProductSuspensionHandler."""

    @pytest.mark.asyncio
    async def test_suspends_at_threshold(self):
        product = make_product(max_missed_payments=2)
        notifications = InMemoryNotificationRepository()
        handler = ProductSuspensionHandler(
            product_repository=InMemoryProductRepository(product),
            notifier=OutboxNotifier(notifications),
            clock=lambda: CHECKOUT_TIME,
        )

        assert await handler(overdue_event(product, 1)) is False
        assert await handler(overdue_event(product, 2)) is True

        assert product.installment.enabled is False
        assert product.installment.suspended_at == CHECKOUT_TIME
        suspended = notifications.of_type(NotificationType.PRODUCT_SUSPENDED)
        assert [n.recipient_id for n in suspended] == [SELLER_ID]

    @pytest.mark.asyncio
    async def test_replayed_event_is_a_no_op(self):
        product = make_product(max_missed_payments=1)
        notifications = InMemoryNotificationRepository()
        handler = ProductSuspensionHandler(
            product_repository=InMemoryProductRepository(product),
            notifier=OutboxNotifier(notifications),
        )
        event = overdue_event(product, 1)

        assert await handler(event) is True
        assert await handler(event) is False
        assert len(notifications.notifications) == 1

    @pytest.mark.asyncio
    async def test_unknown_product_is_ignored(self):
        product = make_product()
        handler = ProductSuspensionHandler(
            product_repository=InMemoryProductRepository(product),
            notifier=OutboxNotifier(InMemoryNotificationRepository()),
        )
        event = replace(overdue_event(product, 5), product_id=uuid4())

        assert await handler(event) is False


# =============================================================================
# Outbox Notifier
# =============================================================================

class TestOutboxNotifier:
    """Tests for OutboxNotifier.notify."""

    @pytest.mark.asyncio
    async def test_writes_pending_notification(self):
        repository = InMemoryNotificationRepository()
        notifier = OutboxNotifier(repository)

        written = await notifier.notify(
            recipient_id=SELLER_ID,
            actor_id=CUSTOMER_ID,
            type=NotificationType.ORDER_CREATED,
            metadata={"order_id": "o-1"},
        )

        assert written is True
        assert repository.notifications[0].status.value == "pending"
        assert repository.notifications[0].to_payload()["type"] == "order_created"

    @pytest.mark.asyncio
    async def test_failed_write_does_not_propagate(self):
        notifier = OutboxNotifier(InMemoryNotificationRepository(fail=True))

        written = await notifier.notify(
            recipient_id=SELLER_ID,
            actor_id=CUSTOMER_ID,
            type=NotificationType.ORDER_CREATED,
            metadata={},
        )

        assert written is False

    @pytest.mark.asyncio
    async def test_missing_recipient_is_skipped(self):
        repository = InMemoryNotificationRepository()
        notifier = OutboxNotifier(repository)

        written = await notifier.notify(
            recipient_id=None,
            actor_id=CUSTOMER_ID,
            type=NotificationType.SALE_CONFIRMATION_REQUIRED,
            metadata={},
        )

        assert written is False
        assert repository.notifications == []


# =============================================================================
# Event Bus
# =============================================================================

class TestDomainEventBus:
    """Tests for DomainEventBus."""

    @pytest.mark.asyncio
    async def test_handlers_run_in_subscription_order(self):
        bus = DomainEventBus()
        calls = []

        async def first(event):
            calls.append("first")
            return 1

        async def second(event):
            calls.append("second")
            return 2

        bus.subscribe(OverdueTranchesDetected, first)
        bus.subscribe(OverdueTranchesDetected, second)

        results = await bus.publish(overdue_event(make_product(), 1))

        assert calls == ["first", "second"]
        assert results == [1, 2]

    @pytest.mark.asyncio
    async def test_unhandled_event(self):
        assert await DomainEventBus().publish(object()) == []

    @pytest.mark.asyncio
    async def test_handler_error_propagates(self):
        bus = DomainEventBus()

        async def broken(event):
            raise RuntimeError("boom")

        bus.subscribe(OverdueTranchesDetected, broken)

        with pytest.raises(RuntimeError):
            await bus.publish(overdue_event(make_product(), 1))


# =============================================================================
# Error Mapping
# =============================================================================

class TestErrorMapping:
    """Tests for status_code_for."""

    @pytest.mark.parametrize(
        "exc, status_code",
        [
            (GuarantorRequiredException(["phone"]), 400),
            (UnauthenticatedException(), 401),
            (TrancheNotFoundException(4), 404),
            (InvalidStateTransitionException("no"), 409),
            (SequentialGateException(index=2, blocking_index=1), 409),
            (AmountMismatchException(expected_cents=10, submitted_cents=9), 409),
            (DomainException("generic"), 400),
        ],
    )
    def test_status_codes(self, exc, status_code):
        assert status_code_for(exc) == status_code


# =============================================================================
# Users Service Payloads
# =============================================================================

class TestRestrictionPayload:
    """Tests for HttpRestrictionClient payload parsing."""

    def setup_method(self):
        self.client = HttpRestrictionClient(base_url="http://users.test", timeout=1.0)

    def test_nested_restriction(self):
        restriction = self.client._parse_restriction(
            {
                "can_order": {
                    "restricted": True,
                    "start_date": "2026-02-01T00:00:00Z",
                    "end_date": "2026-05-01T00:00:00Z",
                    "reason": "chargeback",
                }
            }
        )

        assert restriction.restricted is True
        assert restriction.start_date == datetime(2026, 2, 1, tzinfo=timezone.utc)
        assert restriction.reason == "chargeback"
        assert restriction.is_active(CHECKOUT_TIME) is True

    def test_flat_restriction(self):
        restriction = self.client._parse_restriction({"restricted": False})

        assert restriction.restricted is False
        assert restriction.end_date is None

    def test_empty_restriction(self):
        restriction = self.client._parse_restriction({"can_order": None})

        assert restriction.is_active(CHECKOUT_TIME) is False


# =============================================================================
# HTTP Metric Labels
# =============================================================================

class _Route:
    def __init__(self, path: str):
        self.path = path
        self.path_format = path


def make_request(route_path: Optional[str], root_path: str = "", **extra) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/v1/installments/orders/42",
        "root_path": root_path,
        "query_string": b"",
        "headers": [],
        **extra,
    }
    if route_path is not None:
        scope["route"] = _Route(route_path)
    return Request(scope)


class TestEndpointLabel:
    """Tests for the route template used as the endpoint label."""

    def test_flattened_route_keeps_full_template(self):
        request = make_request("/v1/installments/orders/{order_id}")

        assert _endpoint_label(request) == "/v1/installments/orders/{order_id}"

    def test_mounted_route_gets_mount_prefix(self):
        request = make_request("/installments/orders/{order_id}", root_path="/v1")

        assert _endpoint_label(request) == "/v1/installments/orders/{order_id}"

    def test_application_root_path_is_not_part_of_label(self):
        request = make_request(
            "/installments/orders/{order_id}",
            root_path="/gateway/v1",
            app_root_path="/gateway",
        )

        assert _endpoint_label(request) == "/v1/installments/orders/{order_id}"

    def test_unmatched_request_falls_back_to_path(self):
        request = make_request(None)

        assert _endpoint_label(request) == "/v1/installments/orders/42"
