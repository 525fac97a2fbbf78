"""Eligibility service - standalone score lookup."""

import structlog

from installment_gateway.application.dto import EligibilityResponse
from installment_gateway.domain.interfaces import OrderRepository
from installment_gateway.service.installments import (
    InstallmentSettings,
    calculate_eligibility_score,
    installment_settings,
    risk_level_for_score,
)

logger = structlog.get_logger(__name__)


class EligibilityService:
    def __init__(
        self,
        order_repository: OrderRepository,
        settings: InstallmentSettings = installment_settings,
    ):
        self._order_repo = order_repository
        self._settings = settings

    async def get_eligibility(self, customer_id: str) -> EligibilityResponse:
        """Score the customer's current order history."""
        history = await self._order_repo.get_customer_history(customer_id)
        score = calculate_eligibility_score(history, self._settings)
        risk_level = risk_level_for_score(score, self._settings)

        logger.info(
            "eligibility_computed",
            customer_id=customer_id,
            total_orders=history.total_orders,
            eligibility_score=score,
            risk_level=risk_level.value,
        )

        return EligibilityResponse(
            customer_id=customer_id,
            eligibility_score=score,
            risk_level=risk_level.value,
        )
