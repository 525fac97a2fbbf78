"""
Transition tables for orders and tranches.

Every status change of an installment order or of one of its tranches
goes through ``transition_order`` / ``transition_tranche`` so the
allowed moves live in one place.
"""

from typing import Dict, FrozenSet

from installment_gateway.domain.entities import (
    Order,
    OrderStatus,
    Tranche,
    TrancheStatus,
)
from installment_gateway.domain.exceptions import InvalidStateTransitionException

ORDER_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING_INSTALLMENT: frozenset(
        {OrderStatus.INSTALLMENT_ACTIVE, OrderStatus.CANCELLED}
    ),
    OrderStatus.INSTALLMENT_ACTIVE: frozenset(
        {OrderStatus.OVERDUE_INSTALLMENT, OrderStatus.COMPLETED}
    ),
    OrderStatus.OVERDUE_INSTALLMENT: frozenset(
        {OrderStatus.INSTALLMENT_ACTIVE, OrderStatus.COMPLETED}
    ),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TRANCHE_TRANSITIONS: Dict[TrancheStatus, FrozenSet[TrancheStatus]] = {
    TrancheStatus.PENDING: frozenset(
        {TrancheStatus.PROOF_UPLOADED, TrancheStatus.OVERDUE, TrancheStatus.WAIVED}
    ),
    # A proof can be on an overdue tranche when the due date passed during review
    TrancheStatus.OVERDUE: frozenset(
        {TrancheStatus.PROOF_UPLOADED, TrancheStatus.PAID, TrancheStatus.WAIVED}
    ),
    # Rejecting a proof rewinds the tranche to pending
    TrancheStatus.PROOF_UPLOADED: frozenset(
        {TrancheStatus.PENDING, TrancheStatus.PAID, TrancheStatus.OVERDUE}
    ),
    TrancheStatus.PAID: frozenset(),
    TrancheStatus.WAIVED: frozenset(),
}


def can_transition_order(current: OrderStatus, target: OrderStatus) -> bool:
    if current == target:
        return True
    return target in ORDER_TRANSITIONS.get(current, frozenset())


def can_transition_tranche(current: TrancheStatus, target: TrancheStatus) -> bool:
    return target in TRANCHE_TRANSITIONS.get(current, frozenset())


def transition_order(order: Order, target: OrderStatus) -> bool:
    """
    Move an order to ``target``.

    Returns:
        True if the status changed, False if it already was ``target``

    Raises:
        InvalidStateTransitionException: If the move is not allowed
    """
    current = order.status
    if current == target:
        return False
    if not can_transition_order(current, target):
        raise InvalidStateTransitionException(
            f"Order cannot move from {current.value} to {target.value}",
            current=current.value,
            target=target.value,
        )
    order.status = target
    return True


def transition_tranche(tranche: Tranche, index: int, target: TrancheStatus) -> None:
    """
    Move a tranche to ``target``.

    Raises:
        InvalidStateTransitionException: If the move is not allowed
    """
    current = tranche.status
    if not can_transition_tranche(current, target):
        raise InvalidStateTransitionException(
            f"Tranche {index} cannot move from {current.value} to {target.value}",
            current=current.value,
            target=target.value,
        )
    tranche.status = target


def require_order_status(order: Order, *allowed: OrderStatus) -> None:
    """Raise unless the order is in one of ``allowed``."""
    if order.status not in allowed:
        expected = ", ".join(status.value for status in allowed)
        raise InvalidStateTransitionException(
            f"Order is {order.status.value}; expected one of: {expected}",
            current=order.status.value,
        )
