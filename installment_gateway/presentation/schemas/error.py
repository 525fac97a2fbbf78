"""Pydantic schema for API error responses."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponseSchema(BaseModel):
    """Standard error response format for all API errors."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "error": "PREVIOUS_TRANCHE_UNRESOLVED",
                    "message": "Tranche 1 must be paid before submitting a proof for tranche 2",
                    "request_id": "abc123",
                    "details": {"index": 2, "blocking_index": 1},
                }
            ]
        }
    )

    error: str = Field(
        ...,
        description="Error code",
        examples=["ORDER_NOT_FOUND"],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    request_id: Optional[str] = Field(
        None,
        description="Request ID for tracing",
    )
    details: Optional[Dict[str, Any]] = Field(
        None,
        description="Machine-readable context of the violated rule",
    )
