"""Late-payment penalty rules."""

from datetime import datetime

from installment_gateway.domain.entities import Tranche

from .money import Number, percent_of_cents


def is_late(tranche: Tranche, now: datetime) -> bool:
    """
    Lateness is judged when the seller validates, not when the buyer
    submitted the proof. The down payment is collected at checkout and
    is never late.
    """
    if tranche.is_down_payment:
        return False
    return tranche.due_date < now


def calculate_penalty_cents(amount_cents: int, late_penalty_rate: Number) -> int:
    """Penalty for a late tranche: ``round(amount * rate / 100, 2)``."""
    if amount_cents <= 0:
        return 0
    return percent_of_cents(amount_cents, late_penalty_rate)


def penalty_for(tranche: Tranche, late_penalty_rate: Number, now: datetime) -> int:
    if not is_late(tranche, now):
        return 0
    return calculate_penalty_cents(tranche.amount_cents, late_penalty_rate)
