"""Validation of the installment terms a seller attaches to a product."""

from datetime import datetime
from typing import Optional

from installment_gateway.domain.entities import ProductInstallmentConfig
from installment_gateway.domain.exceptions import InvalidInstallmentConfigException

from .dates import whole_days_between
from .settings import InstallmentSettings, installment_settings

MAX_MISSED_PAYMENTS_UPPER_BOUND = 12


def validate_installment_config(
    *,
    enabled: bool,
    price_cents: int,
    min_amount_cents: Optional[int] = None,
    duration_days: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    late_penalty_rate: Optional[float] = None,
    max_missed_payments: Optional[int] = None,
    require_guarantor: bool = False,
    settings: InstallmentSettings = installment_settings,
) -> ProductInstallmentConfig:
    """
    Validate and normalize installment terms.

    Disabling installments resets every term to its default. The
    duration must match the whole-day gap between the window dates.

    Returns:
        The normalized configuration, with no suspension stamp

    Raises:
        InvalidInstallmentConfigException: On the first invalid term
    """
    if not enabled:
        return ProductInstallmentConfig(
            enabled=False,
            max_missed_payments=settings.default_max_missed_payments,
        )

    if min_amount_cents is None or min_amount_cents <= 0:
        raise InvalidInstallmentConfigException(
            "The minimum first payment must be positive."
        )
    if min_amount_cents > price_cents:
        raise InvalidInstallmentConfigException(
            "The minimum first payment cannot exceed the product price."
        )
    if duration_days is None or duration_days <= 0:
        raise InvalidInstallmentConfigException(
            "The installment duration must be a positive number of days."
        )
    if start_date is None or end_date is None:
        raise InvalidInstallmentConfigException(
            "The installment start and end dates are required."
        )
    if end_date <= start_date:
        raise InvalidInstallmentConfigException(
            "The end date must be after the start date."
        )

    window_days = whole_days_between(start_date, end_date)
    if window_days != duration_days:
        raise InvalidInstallmentConfigException(
            f"The duration ({duration_days} days) must match the gap "
            f"between the dates ({window_days} days)."
        )

    rate = 0.0 if late_penalty_rate is None else float(late_penalty_rate)
    if rate < 0 or rate > 100:
        raise InvalidInstallmentConfigException(
            "The late penalty rate must be between 0 and 100."
        )

    max_missed = (
        settings.default_max_missed_payments
        if max_missed_payments is None
        else max_missed_payments
    )
    if max_missed < 1 or max_missed > MAX_MISSED_PAYMENTS_UPPER_BOUND:
        raise InvalidInstallmentConfigException(
            f"The maximum number of missed payments must be between 1 and "
            f"{MAX_MISSED_PAYMENTS_UPPER_BOUND}."
        )

    return ProductInstallmentConfig(
        enabled=True,
        min_amount_cents=min_amount_cents,
        duration_days=duration_days,
        start_date=start_date,
        end_date=end_date,
        late_penalty_rate=rate,
        max_missed_payments=max_missed,
        require_guarantor=require_guarantor,
        suspended_at=None,
    )
