"""
Common schemas for API responses and error handling.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Schema for detailed error information."""

    error_code: str = Field(..., description="Error code for programmatic handling")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error context")
    suggestions: Optional[List[str]] = Field(None, description="Helpful suggestions for resolving the error")
    action: Optional[str] = Field(None, description="Client flow to start, e.g. complete_profile")


class ErrorResponse(BaseModel):
    """Schema for API error responses."""

    error: ErrorDetail
    error_id: Optional[str] = Field(None, description="Identifier to quote when reporting the error")
    timestamp: Optional[str] = Field(None, description="When the error occurred (UTC, ISO 8601)")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "error": {
                        "error_code": "PROFILE_INCOMPLETE",
                        "message": "Please complete your profile before registering",
                        "details": {"missing_fields": ["roll_no", "mobile_number"]},
                        "action": "complete_profile"
                    }
                },
                {
                    "error": {
                        "error_code": "EVENT_FULL",
                        "message": "This event has reached its capacity",
                        "details": {"current_count": 50, "max_capacity": 50}
                    }
                }
            ]
        }
    }


class SuccessResponse(BaseModel):
    """Schema for simple success responses."""

    message: str = Field(..., description="Success message")
    data: Optional[Dict[str, Any]] = Field(None, description="Additional response data")
