"""
Installment Rules for the deferred-payment engine.

Pure functions: no I/O, no persistence. The application services
feed them entities and persist what they return.
"""

from .settings import InstallmentSettings, installment_settings
from .money import percent_of_cents, round_half_up
from .dates import add_days, ensure_utc, utcnow, whole_days_between
from .eligibility import calculate_eligibility_score, risk_level_for_score
from .schedule import count_schedule_steps, due_offset_days, generate_schedule
from .penalty import calculate_penalty_cents, is_late, penalty_for
from .product_config import validate_installment_config

__all__ = [
    # Settings
    "InstallmentSettings",
    "installment_settings",
    # Money
    "percent_of_cents",
    "round_half_up",
    # Dates
    "add_days",
    "ensure_utc",
    "utcnow",
    "whole_days_between",
    # Eligibility
    "calculate_eligibility_score",
    "risk_level_for_score",
    # Schedule
    "count_schedule_steps",
    "due_offset_days",
    "generate_schedule",
    # Penalty
    "calculate_penalty_cents",
    "is_late",
    "penalty_for",
    # Product configuration
    "validate_installment_config",
]
