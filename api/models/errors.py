"""
Error Response Models

Standardized error bodies returned by every API exception handler.
"""

from datetime import datetime, timezone
from typing import Dict, Optional, Any, List

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standardized error response model for API errors."""
    status: str = Field(
        default="error",
        description="Error status indicator"
    )
    message: str = Field(
        ...,
        description="Human-readable error message"
    )
    error_code: str = Field(
        ...,
        description="Machine-readable error code"
    )
    details: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Additional error details"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Error timestamp"
    )


class ValidationErrorItem(BaseModel):
    """Location and cause of a single field validation failure."""
    loc: List[str]
    msg: str
    type: str


class ValidationErrorResponse(ErrorResponse):
    """Error response carrying field-level validation failures."""
    validation_errors: List[ValidationErrorItem] = Field(
        ...,
        description="List of specific validation errors"
    )
