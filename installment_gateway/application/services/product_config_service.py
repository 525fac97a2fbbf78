"""Product configuration service - seller-managed installment terms."""

import structlog

from installment_gateway.application.dto import ProductConfigRequest, ProductConfigResponse
from installment_gateway.domain.exceptions import ProductNotFoundException
from installment_gateway.domain.interfaces import ProductRepository
from installment_gateway.service.installments import (
    InstallmentSettings,
    ensure_utc,
    installment_settings,
    validate_installment_config,
)

logger = structlog.get_logger(__name__)


class ProductConfigService:
    def __init__(
        self,
        product_repository: ProductRepository,
        settings: InstallmentSettings = installment_settings,
    ):
        self._product_repo = product_repository
        self._settings = settings

    async def configure(self, request: ProductConfigRequest) -> ProductConfigResponse:
        """
        Validate and store a product's installment terms.

        Saving enabled terms clears any previous automatic suspension.

        Raises:
            ProductNotFoundException: If the seller does not own the product
            InvalidInstallmentConfigException: If a term is invalid
        """
        product = await self._product_repo.get_by_id(request.product_id)
        if product is None or product.seller_id != request.seller_id:
            raise ProductNotFoundException(str(request.product_id))

        config = validate_installment_config(
            enabled=request.enabled,
            price_cents=product.price_cents,
            min_amount_cents=request.min_amount_cents,
            duration_days=request.duration_days,
            start_date=ensure_utc(request.start_date),
            end_date=ensure_utc(request.end_date),
            late_penalty_rate=request.late_penalty_rate,
            max_missed_payments=request.max_missed_payments,
            require_guarantor=request.require_guarantor,
            settings=self._settings,
        )
        await self._product_repo.update_installment_config(product.id, config)

        logger.info(
            "installment_config_updated",
            product_id=str(product.id),
            seller_id=request.seller_id,
            enabled=config.enabled,
            was_suspended=product.installment.suspended_at is not None,
        )

        return ProductConfigResponse.from_config(str(product.id), config)
