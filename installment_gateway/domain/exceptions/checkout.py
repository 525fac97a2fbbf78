"""Exceptions raised while validating checkout and installment terms."""

from typing import List

from .base import DomainException


class InvalidInstallmentRequestException(DomainException):
    """Raised when a request fails input validation."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            code="INVALID_INSTALLMENT_REQUEST",
        )


class InstallmentUnavailableException(DomainException):
    """Raised when a product does not currently offer installments."""

    def __init__(self, product_id: str):
        super().__init__(
            message=f"Installment payment is not available for product {product_id}",
            code="INSTALLMENT_UNAVAILABLE",
        )
        self.product_id = product_id


class GuarantorRequiredException(DomainException):
    """Raised when the product requires a guarantor and fields are missing."""

    def __init__(self, missing_fields: List[str]):
        super().__init__(
            message=(
                "Guarantor information is required: "
                + ", ".join(missing_fields)
            ),
            code="GUARANTOR_REQUIRED",
        )
        self.missing_fields = missing_fields

    @property
    def details(self) -> dict:
        return {"missing_fields": self.missing_fields}


class InvalidInstallmentConfigException(DomainException):
    """Raised when a seller submits inconsistent installment terms."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            code="INVALID_INSTALLMENT_CONFIG",
        )
