"""Domain Exceptions - Business rule violations and domain errors."""

from .base import DomainException
from .checkout import (
    GuarantorRequiredException,
    InstallmentUnavailableException,
    InvalidInstallmentConfigException,
    InvalidInstallmentRequestException,
)
from .customer import (
    CustomerNotFoundException,
    CustomerRestrictedException,
    RestrictionServiceException,
    UnauthenticatedException,
)
from .order import (
    AmountMismatchException,
    ConcurrentModificationException,
    InvalidStateTransitionException,
    OrderNotFoundException,
    SequentialGateException,
    TrancheNotFoundException,
)
from .product import ProductNotFoundException

__all__ = [
    "DomainException",
    "GuarantorRequiredException",
    "InstallmentUnavailableException",
    "InvalidInstallmentConfigException",
    "InvalidInstallmentRequestException",
    "CustomerNotFoundException",
    "CustomerRestrictedException",
    "RestrictionServiceException",
    "UnauthenticatedException",
    "AmountMismatchException",
    "ConcurrentModificationException",
    "InvalidStateTransitionException",
    "OrderNotFoundException",
    "SequentialGateException",
    "TrancheNotFoundException",
    "ProductNotFoundException",
]
