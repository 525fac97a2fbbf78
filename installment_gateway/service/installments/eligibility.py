"""
Eligibility Scoring for installment checkout.

Turns a customer's order history into a bounded 0-100 score and a
risk level. Each factor is capped on its own so that no single part
of the history can zero out or saturate the score; a customer with
no history lands on the neutral prior.
"""

from installment_gateway.domain.entities import CustomerOrderHistory, RiskLevel

from .money import round_half_up
from .settings import InstallmentSettings, installment_settings


def calculate_eligibility_score(
    history: CustomerOrderHistory,
    settings: InstallmentSettings = installment_settings,
) -> int:
    """
    Score a customer's order history.

    Args:
        history: Aggregate counts over the customer's non-draft orders
        settings: Installment settings (uses defaults if not provided)

    Returns:
        Score from 0-100, higher is safer

    Example:
        10 orders, 8 delivered, 1 cancelled, 2 completed plans, none overdue:
        55 + round(0.8 * 30) + min(10, 4) - round(0.1 * 25) - 0
        = 55 + 24 + 4 - 3 = 80
    """
    total = history.total_orders
    completion_rate = history.delivered_orders / total if total > 0 else 0.0
    cancellation_rate = history.cancelled_orders / total if total > 0 else 0.0

    score = settings.neutral_score
    score += round_half_up(completion_rate * settings.completion_weight)
    score += min(
        settings.completed_installment_cap,
        history.completed_installments * settings.completed_installment_points,
    )
    score -= round_half_up(cancellation_rate * settings.cancellation_weight)
    score -= min(
        settings.overdue_cap,
        history.overdue_installments * settings.overdue_points,
    )

    return max(0, min(100, score))


def risk_level_for_score(
    score: int,
    settings: InstallmentSettings = installment_settings,
) -> RiskLevel:
    """
    Map a score to a risk level.

    >= 75 is low risk, >= 50 medium, anything below is high.
    """
    if score >= settings.low_risk_threshold:
        return RiskLevel.LOW
    if score >= settings.medium_risk_threshold:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH
