"""Customer and users-service exceptions."""

from .base import DomainException


class CustomerNotFoundException(DomainException):
    """Raised when the users service does not know the customer."""

    def __init__(self, customer_id: str):
        super().__init__(
            message=f"Customer not found: {customer_id}",
            code="CUSTOMER_NOT_FOUND",
        )
        self.customer_id = customer_id


class CustomerRestrictedException(DomainException):
    """Raised when the customer is currently barred from ordering."""

    def __init__(self, customer_id: str):
        super().__init__(
            message="You are not allowed to place orders at the moment.",
            code="CUSTOMER_RESTRICTED",
        )
        self.customer_id = customer_id


class RestrictionServiceException(DomainException):
    """Raised when the restriction check cannot be performed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(
            message=message,
            code="RESTRICTION_SERVICE_ERROR",
        )
        self.status_code = status_code


class UnauthenticatedException(DomainException):
    """Raised when the request carries no caller identity."""

    def __init__(self):
        super().__init__(
            message="Caller identity is required (X-User-ID header).",
            code="UNAUTHENTICATED",
        )
