"""
Schedule Generation for installment plans.

Splits the balance left after the first payment into roughly monthly
tranches using integer cents, so the tranche amounts always sum to
the balance exactly.
"""

import math
from datetime import datetime
from typing import List

from installment_gateway.domain.entities import Tranche, TrancheStatus

from .dates import add_days
from .settings import InstallmentSettings, installment_settings


def count_schedule_steps(
    duration_days: int,
    settings: InstallmentSettings = installment_settings,
) -> int:
    """Number of tranches for a plan of ``duration_days``."""
    return max(1, math.ceil(duration_days / settings.schedule_step_days))


def due_offset_days(step_index: int, steps: int, duration_days: int) -> int:
    """
    Day offset of a tranche from the first payment.

    ``round((i + 1) * duration / steps)`` with halves rounded up, never
    less than one day.
    """
    numerator = (step_index + 1) * duration_days
    return max(1, (2 * numerator + steps) // (2 * steps))


def generate_schedule(
    remaining_cents: int,
    duration_days: int,
    first_payment_date: datetime,
    settings: InstallmentSettings = installment_settings,
) -> List[Tranche]:
    """
    Generate the tranches covering the balance after the first payment.

    Args:
        remaining_cents: Balance still owed after the first payment
        duration_days: Plan duration configured on the product
        first_payment_date: When the first payment was made
        settings: Installment settings (uses defaults if not provided)

    Returns:
        Tranches in due-date order, empty if nothing is owed or the
        duration is not positive

    Example:
        4_500_000 cents over 60 days -> 2 tranches of 2_250_000 due at
        day 30 and day 60. 100_001 cents over 90 days -> 33_333,
        33_333 and 33_335 (the last tranche absorbs the remainder).
    """
    if remaining_cents <= 0 or duration_days <= 0:
        return []

    steps = count_schedule_steps(duration_days, settings)
    base_step_cents = remaining_cents // steps

    schedule: List[Tranche] = []
    consumed = 0
    for index in range(steps):
        if index == steps - 1:
            step_cents = remaining_cents - consumed
        else:
            step_cents = base_step_cents
        consumed += step_cents

        schedule.append(
            Tranche(
                due_date=add_days(
                    first_payment_date,
                    due_offset_days(index, steps, duration_days),
                ),
                amount_cents=step_cents,
                status=TrancheStatus.PENDING,
                penalty_cents=0,
            )
        )

    return schedule
