"""HTTP implementation of RestrictionClient."""

import asyncio
from datetime import datetime
from typing import Any, Dict, Optional

import httpx
import structlog

from installment_gateway.core.config import settings
from installment_gateway.core.metrics import (
    record_restriction_check_failure,
    track_restriction_check_latency,
)
from installment_gateway.domain.entities import OrderRestriction
from installment_gateway.domain.exceptions import (
    CustomerNotFoundException,
    RestrictionServiceException,
)
from installment_gateway.domain.interfaces import RestrictionClient
from installment_gateway.service.installments import ensure_utc

logger = structlog.get_logger(__name__)


class HttpRestrictionClient(RestrictionClient):
    """
    HTTP client for the users service.

    Reads the customer's order restriction with retry logic and proper
    error handling.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int = 3,
    ):
        self._base_url = base_url or settings.users_api_url
        self._timeout = timeout or settings.users_api_timeout
        self._max_retries = max_retries

    async def get_order_restriction(self, customer_id: str) -> OrderRestriction:
        """
        Fetch the customer's order restriction.

        Implements retry logic with exponential backoff.
        """
        url = f"{self._base_url}/users/{customer_id}/restrictions"

        last_exception = None

        for attempt in range(self._max_retries):
            try:
                with track_restriction_check_latency():
                    async with httpx.AsyncClient(timeout=self._timeout) as client:
                        response = await client.get(url)

                        if response.status_code == 404:
                            record_restriction_check_failure("not_found")
                            raise CustomerNotFoundException(customer_id)

                        if response.status_code >= 400:
                            record_restriction_check_failure("error")
                            raise RestrictionServiceException(
                                message=f"Users service error: {response.text}",
                                status_code=response.status_code,
                            )

                        return self._parse_restriction(response.json())

            except httpx.TimeoutException:
                record_restriction_check_failure("timeout")
                last_exception = RestrictionServiceException(
                    "Users service request timed out"
                )
                logger.warning(
                    "restriction_check_timeout",
                    customer_id=customer_id,
                    attempt=attempt + 1,
                    max_retries=self._max_retries,
                )
            except (CustomerNotFoundException, RestrictionServiceException):
                raise
            except Exception as e:
                record_restriction_check_failure("error")
                last_exception = RestrictionServiceException(
                    message=f"Unexpected error: {str(e)}",
                )
                logger.error(
                    "restriction_check_error",
                    customer_id=customer_id,
                    attempt=attempt + 1,
                    error=str(e),
                )

            # Exponential backoff
            if attempt < self._max_retries - 1:
                await asyncio.sleep(2**attempt * 0.1)

        raise last_exception or RestrictionServiceException(
            "Failed to fetch order restriction"
        )

    def _parse_restriction(self, data: Dict[str, Any]) -> OrderRestriction:
        """Parse the users service payload; the restriction may be nested under ``can_order``."""
        body = data.get("can_order", data) or {}

        return OrderRestriction(
            restricted=bool(body.get("restricted", False)),
            start_date=self._parse_datetime(body.get("start_date")),
            end_date=self._parse_datetime(body.get("end_date")),
            reason=body.get("reason") or "",
        )

    @staticmethod
    def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
        if not value:
            return None
        return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
