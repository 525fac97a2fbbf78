"""Error handling middleware and exception handlers."""

from typing import Dict, Type

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import structlog

from installment_gateway.core.metrics import record_order_conflict
from installment_gateway.domain.exceptions import (
    AmountMismatchException,
    ConcurrentModificationException,
    CustomerNotFoundException,
    CustomerRestrictedException,
    DomainException,
    GuarantorRequiredException,
    InstallmentUnavailableException,
    InvalidInstallmentConfigException,
    InvalidInstallmentRequestException,
    InvalidStateTransitionException,
    OrderNotFoundException,
    ProductNotFoundException,
    RestrictionServiceException,
    SequentialGateException,
    TrancheNotFoundException,
    UnauthenticatedException,
)
from .request_context import get_request_id

logger = structlog.get_logger(__name__)

DOMAIN_STATUS_CODES: Dict[Type[DomainException], int] = {
    InvalidInstallmentRequestException: 400,
    InstallmentUnavailableException: 400,
    GuarantorRequiredException: 400,
    InvalidInstallmentConfigException: 400,
    UnauthenticatedException: 401,
    CustomerRestrictedException: 403,
    OrderNotFoundException: 404,
    TrancheNotFoundException: 404,
    ProductNotFoundException: 404,
    CustomerNotFoundException: 404,
    InvalidStateTransitionException: 409,
    SequentialGateException: 409,
    AmountMismatchException: 409,
}


def status_code_for(exc: DomainException) -> int:
    """HTTP status for a domain exception; unknown domain errors are 400."""
    for cls in type(exc).__mro__:
        if cls in DOMAIN_STATUS_CODES:
            return DOMAIN_STATUS_CODES[cls]
    return 400


def _error_body(exc: DomainException, message: str | None = None) -> dict:
    body = {
        "error": exc.code,
        "message": message or exc.message,
        "request_id": get_request_id(),
    }
    if exc.details:
        body["details"] = exc.details
    return body


def error_handler_middleware(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI app.

    Maps domain exceptions to appropriate HTTP responses.
    """

    @app.exception_handler(ConcurrentModificationException)
    async def concurrent_modification_handler(
        request: Request,
        exc: ConcurrentModificationException,
    ) -> JSONResponse:
        """Handle lost optimistic-lock races."""
        record_order_conflict("request")
        logger.warning(
            "order_conflict",
            request_id=get_request_id(),
            order_id=exc.order_id,
            expected_version=exc.expected_version,
        )
        return JSONResponse(
            status_code=409,
            content=_error_body(
                exc,
                "The order was modified by another request. Please retry.",
            ),
        )

    @app.exception_handler(RestrictionServiceException)
    async def restriction_service_handler(
        request: Request,
        exc: RestrictionServiceException,
    ) -> JSONResponse:
        """Handle users service failures."""
        logger.error(
            "restriction_service_error",
            request_id=get_request_id(),
            message=exc.message,
            status_code=exc.status_code,
        )
        return JSONResponse(
            status_code=503,
            content=_error_body(
                exc,
                "Unable to verify your account right now. Please try again later.",
            ),
        )

    @app.exception_handler(DomainException)
    async def domain_exception_handler(
        request: Request,
        exc: DomainException,
    ) -> JSONResponse:
        """Handle validation, not-found and state-conflict errors."""
        status_code = status_code_for(exc)
        logger.warning(
            "domain_exception",
            request_id=get_request_id(),
            code=exc.code,
            message=exc.message,
            status_code=status_code,
        )
        return JSONResponse(status_code=status_code, content=_error_body(exc))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception(
            "unhandled_exception",
            request_id=get_request_id(),
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "INTERNAL_ERROR",
                "message": "An unexpected error occurred.",
                "request_id": get_request_id(),
            },
        )
