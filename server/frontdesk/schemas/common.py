"""Common Pydantic schemas."""

from typing import List, Optional

from pydantic import BaseModel, Field


class Violation(BaseModel):
    """Validation error violation."""

    path: str = Field(..., description="JSON path to the invalid field")
    message: str = Field(..., description="Validation error message")


class Problem(BaseModel):
    """RFC 9457 Problem Details response."""

    type: Optional[str] = Field(None, description="Problem type URI")
    title: str = Field(..., description="Short human-readable summary")
    status: int = Field(..., description="HTTP status code")
    detail: Optional[str] = Field(None, description="Human-readable explanation")
    instance: Optional[str] = Field(None, description="URI reference for this occurrence")
    code: Optional[str] = Field(None, description="Application-specific error code")
    retryable: Optional[bool] = Field(None, description="Whether the operation can be retried")
    errors: Optional[dict[str, str]] = Field(None, description="Field-keyed validation errors")
    violations: Optional[List[Violation]] = Field(None, description="Validation errors")


class StayDates(BaseModel):
    """Raw check-in/check-out strings as entered by the operator (YYYY-MM-DD)."""

    check_in: Optional[str] = Field(None, description="Check-in date (YYYY-MM-DD)")
    check_out: Optional[str] = Field(None, description="Check-out date (YYYY-MM-DD), exclusive")


# OpenAPI documentation for error responses rendered by the problem handlers
PROBLEM_RESPONSES = {
    400: {"model": Problem, "description": "Invalid dates or request values"},
    404: {"model": Problem, "description": "Unknown room, meal plan or reservation"},
    409: {"model": Problem, "description": "Room unavailable or invalid state change"},
    422: {"model": Problem, "description": "Request body failed schema validation"},
}
