"""Common schemas used across the API.

This module contains reusable schema components for consistent API responses.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base for request and response bodies.

    Fields are snake_case in Python and camelCase on the wire; input is
    accepted in either form.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ErrorBody(BaseModel):
    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    details: Dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """
    Standard error response format.

    All API errors use this envelope so clients can branch on `error.code`.
    """
    error: ErrorBody

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "error": {
                        "code": "SEQUENCE_NOT_FOUND",
                        "message": "Sequence not found or access denied",
                        "details": {},
                    }
                },
                {
                    "error": {
                        "code": "INVALID_POSITION",
                        "message": "Position must be between 1 and 4",
                        "details": {"position": 7, "min": 1, "max": 4},
                    }
                },
            ]
        }
    }


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    mode: str
    version: str = "1.0.0"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
