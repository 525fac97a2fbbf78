"""
Unit Tests for order and tranche lifecycles.

These tests verify:
1. Allowed and forbidden order/tranche transitions
2. Plan aggregates derived from the schedule
3. Restriction windows read from the users service
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from installment_gateway.domain.entities import (
    InstallmentPlan,
    Order,
    OrderItem,
    OrderItemSnapshot,
    OrderRestriction,
    OrderStatus,
    RiskLevel,
    Tranche,
    TrancheStatus,
)
from installment_gateway.domain.exceptions import (
    InvalidStateTransitionException,
    TrancheNotFoundException,
)
from installment_gateway.domain.lifecycle import (
    can_transition_order,
    can_transition_tranche,
    require_order_status,
    transition_order,
    transition_tranche,
)

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def make_plan(*statuses: TrancheStatus) -> InstallmentPlan:
    """Down payment of 500_000 followed by 2_250_000 tranches."""
    schedule = [
        Tranche(
            due_date=NOW,
            amount_cents=500_000,
            status=TrancheStatus.PAID,
            is_down_payment=True,
        )
    ]
    for offset, status in enumerate(statuses, start=1):
        schedule.append(
            Tranche(
                due_date=NOW + timedelta(days=30 * offset),
                amount_cents=2_250_000,
                status=status,
            )
        )
    return InstallmentPlan(
        total_cents=500_000 + 2_250_000 * len(statuses),
        eligibility_score=55,
        risk_level=RiskLevel.MEDIUM,
        late_penalty_rate=5.0,
        schedule=schedule,
    )


def make_order(status: OrderStatus = OrderStatus.PENDING_INSTALLMENT) -> Order:
    return Order(
        customer_id="customer_1",
        items=[
            OrderItem(
                product_id=uuid4(),
                quantity=1,
                snapshot=OrderItemSnapshot(
                    title="Phone",
                    price_cents=5_000_000,
                    shop_id="seller_1",
                ),
            )
        ],
        total_cents=5_000_000,
        status=status,
    )


# =============================================================================
# Order Transitions
# =============================================================================

class TestOrderTransitions:
    """Tests for the order status table."""

    @pytest.mark.parametrize(
        "current, target",
        [
            (OrderStatus.PENDING_INSTALLMENT, OrderStatus.INSTALLMENT_ACTIVE),
            (OrderStatus.PENDING_INSTALLMENT, OrderStatus.CANCELLED),
            (OrderStatus.INSTALLMENT_ACTIVE, OrderStatus.OVERDUE_INSTALLMENT),
            (OrderStatus.INSTALLMENT_ACTIVE, OrderStatus.COMPLETED),
            (OrderStatus.OVERDUE_INSTALLMENT, OrderStatus.INSTALLMENT_ACTIVE),
            (OrderStatus.OVERDUE_INSTALLMENT, OrderStatus.COMPLETED),
        ],
    )
    def test_allowed_transitions(self, current, target):
        order = make_order(current)

        assert transition_order(order, target) is True
        assert order.status == target

    @pytest.mark.parametrize(
        "current, target",
        [
            (OrderStatus.PENDING_INSTALLMENT, OrderStatus.COMPLETED),
            (OrderStatus.INSTALLMENT_ACTIVE, OrderStatus.CANCELLED),
            (OrderStatus.COMPLETED, OrderStatus.INSTALLMENT_ACTIVE),
            (OrderStatus.CANCELLED, OrderStatus.INSTALLMENT_ACTIVE),
        ],
    )
    def test_forbidden_transitions(self, current, target):
        order = make_order(current)

        with pytest.raises(InvalidStateTransitionException) as exc_info:
            transition_order(order, target)

        assert order.status == current
        assert exc_info.value.details["current"] == current.value

    def test_same_status_is_a_no_op(self):
        order = make_order(OrderStatus.INSTALLMENT_ACTIVE)

        assert can_transition_order(order.status, order.status) is True
        assert transition_order(order, OrderStatus.INSTALLMENT_ACTIVE) is False

    def test_require_order_status(self):
        order = make_order(OrderStatus.CANCELLED)

        require_order_status(order, OrderStatus.CANCELLED)
        with pytest.raises(InvalidStateTransitionException):
            require_order_status(
                order,
                OrderStatus.INSTALLMENT_ACTIVE,
                OrderStatus.OVERDUE_INSTALLMENT,
            )


# =============================================================================
# Tranche Transitions
# =============================================================================

class TestTrancheTransitions:
    """Tests for the tranche status table."""

    def test_proof_then_payment(self):
        tranche = Tranche(due_date=NOW, amount_cents=1_000)

        transition_tranche(tranche, 1, TrancheStatus.PROOF_UPLOADED)
        transition_tranche(tranche, 1, TrancheStatus.PAID)

        assert tranche.status == TrancheStatus.PAID
        assert tranche.is_resolved is True

    def test_rejected_proof_rewinds_to_pending(self):
        assert can_transition_tranche(
            TrancheStatus.PROOF_UPLOADED, TrancheStatus.PENDING
        ) is True

    def test_overdue_tranche_accepts_a_proof(self):
        assert can_transition_tranche(
            TrancheStatus.OVERDUE, TrancheStatus.PROOF_UPLOADED
        ) is True

    def test_tranche_under_review_can_go_overdue(self):
        assert can_transition_tranche(
            TrancheStatus.PROOF_UPLOADED, TrancheStatus.OVERDUE
        ) is True

    def test_overdue_tranche_can_be_paid(self):
        tranche = Tranche(
            due_date=NOW, amount_cents=1_000, status=TrancheStatus.OVERDUE
        )

        transition_tranche(tranche, 1, TrancheStatus.PAID)

        assert tranche.status == TrancheStatus.PAID

    @pytest.mark.parametrize(
        "current, target",
        [
            (TrancheStatus.PENDING, TrancheStatus.PAID),
            (TrancheStatus.PAID, TrancheStatus.PENDING),
            (TrancheStatus.WAIVED, TrancheStatus.OVERDUE),
            (TrancheStatus.PAID, TrancheStatus.OVERDUE),
        ],
    )
    def test_forbidden_tranche_transitions(self, current, target):
        tranche = Tranche(due_date=NOW, amount_cents=1_000, status=current)

        with pytest.raises(InvalidStateTransitionException):
            transition_tranche(tranche, 2, target)

        assert tranche.status == current


# =============================================================================
# Plan Aggregates
# =============================================================================

class TestPlanAggregates:
    """Tests for InstallmentPlan.recompute_aggregates and friends."""

    def test_aggregates_include_penalties_in_paid_amount(self):
        plan = make_plan(TrancheStatus.PAID, TrancheStatus.PENDING)
        plan.schedule[1].penalty_cents = 112_500

        plan.recompute_aggregates()

        assert plan.total_penalty_cents == 112_500
        assert plan.amount_paid_cents == 500_000 + 2_250_000 + 112_500
        assert plan.remaining_cents == 2_250_000
        assert plan.next_due_date == plan.schedule[2].due_date
        assert plan.progress()["progress"] == 55

    def test_overdue_count_and_next_due_date(self):
        plan = make_plan(TrancheStatus.OVERDUE, TrancheStatus.PROOF_UPLOADED)

        plan.recompute_aggregates()

        assert plan.overdue_count == 1
        assert plan.next_due_date == plan.schedule[1].due_date

    def test_waived_tranche_settles_principal_without_payment(self):
        plan = make_plan(TrancheStatus.WAIVED)

        plan.recompute_aggregates()

        assert plan.remaining_cents == 0
        assert plan.amount_paid_cents == 500_000
        assert plan.next_due_date is None
        assert plan.progress()["progress"] == 100

    def test_first_unresolved_before(self):
        plan = make_plan(TrancheStatus.PAID, TrancheStatus.PENDING, TrancheStatus.PENDING)

        assert plan.first_unresolved_before(2) is None
        assert plan.first_unresolved_before(3) == 2

    def test_unknown_tranche_index(self):
        plan = make_plan(TrancheStatus.PENDING)

        with pytest.raises(TrancheNotFoundException):
            plan.tranche(5)
        with pytest.raises(TrancheNotFoundException):
            plan.tranche(-1)

    def test_order_mirrors_plan_amounts(self):
        order = make_order(OrderStatus.INSTALLMENT_ACTIVE)
        order.installment_plan = make_plan(TrancheStatus.PAID, TrancheStatus.PENDING)

        order.sync_amounts()

        assert order.paid_cents == 2_750_000
        assert order.remaining_cents == 2_250_000

    def test_plan_serialization_keeps_schedule(self):
        plan = make_plan(TrancheStatus.PENDING)

        restored = InstallmentPlan.from_dict(plan.to_dict())

        assert restored.schedule[0].is_down_payment is True
        assert restored.schedule[1].due_date == plan.schedule[1].due_date
        assert restored.risk_level == RiskLevel.MEDIUM


# =============================================================================
# Restrictions
# =============================================================================

class TestOrderRestriction:
    """Tests for OrderRestriction.is_active."""

    def test_unrestricted(self):
        assert OrderRestriction().is_active(NOW) is False

    def test_open_ended_restriction(self):
        assert OrderRestriction(restricted=True).is_active(NOW) is True

    def test_restriction_window(self):
        restriction = OrderRestriction(
            restricted=True,
            start_date=NOW - timedelta(days=1),
            end_date=NOW + timedelta(days=1),
        )

        assert restriction.is_active(NOW) is True
        assert restriction.is_active(NOW - timedelta(days=2)) is False
        assert restriction.is_active(NOW + timedelta(days=2)) is False
