"""
Error response schemas for API documentation and consistent error formatting.
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Any, Dict


class ErrorDetail(BaseModel):
    """Schema for individual error detail."""

    field: Optional[str] = Field(None, description="Field name that caused the error", examples=["email"])
    message: str = Field(..., description="Human-readable error message")
    type: Optional[str] = Field(None, description="Error type identifier", examples=["value_error"])
    input: Optional[Any] = Field(None, description="Input value that caused the error")


class ErrorResponse(BaseModel):
    """Schema for standardized error responses."""

    code: str = Field(..., description="Error code identifier", examples=["UNAUTHORIZED"])
    message: str = Field(..., description="Human-readable error message", examples=["Unauthorized"])
    timestamp: str = Field(..., description="Error timestamp in ISO format", examples=["2026-01-01T00:00:00Z"])
    request_id: Optional[str] = Field(None, description="Identifier for tracking the failure in logs", examples=["abc12345"])
    details: Optional[List[ErrorDetail]] = Field(None, description="Per-field information for validation errors")


class APIErrorResponse(BaseModel):
    """Schema for API error response wrapper."""

    success: bool = False
    error: ErrorResponse


# Documented error codes per status, in the order they are listed in OpenAPI
ERROR_CODES_BY_STATUS = {
    401: ("Unauthorized - missing, invalid or foreign identity", ["UNAUTHORIZED", "INVALID_CREDENTIALS"]),
    404: ("Not Found - resource does not exist", ["NOT_FOUND", "USER_NOT_FOUND"]),
    409: ("Conflict - email or username already in use", ["DUPLICATE_EMAIL", "DUPLICATE_USERNAME"]),
    422: (
        "Unprocessable Entity - invalid payload or image set",
        ["VALIDATION_ERROR", "EMPTY_IMAGE_SET", "TOO_MANY_IMAGES", "UNRESOLVED_LOCAL_IMAGE", "FILE_UPLOAD_ERROR"]
    ),
    500: ("Internal Server Error - unexpected or storage failure", ["INTERNAL_SERVER_ERROR"]),
}


def get_error_responses(*status_codes: int) -> Dict[int, Dict[str, Any]]:
    """
    Build OpenAPI ``responses`` entries for the given status codes.

    Args:
        status_codes: HTTP status codes to include

    Returns:
        Dictionary usable as a route's ``responses`` argument
    """
    responses = {}
    for code in status_codes:
        if code not in ERROR_CODES_BY_STATUS:
            continue
        description, error_codes = ERROR_CODES_BY_STATUS[code]
        responses[code] = {
            "description": description,
            "model": APIErrorResponse,
            "content": {
                "application/json": {
                    "examples": {
                        error_code.lower(): {
                            "summary": error_code,
                            "value": {
                                "success": False,
                                "error": {
                                    "code": error_code,
                                    "message": description.split(" - ")[0],
                                    "timestamp": "2026-01-01T00:00:00Z",
                                    "request_id": "abc12345"
                                }
                            }
                        }
                        for error_code in error_codes
                    }
                }
            }
        }
    return responses


def get_auth_error_responses() -> Dict[int, Dict[str, Any]]:
    return get_error_responses(401, 404, 409, 422, 500)


def get_listing_error_responses() -> Dict[int, Dict[str, Any]]:
    return get_error_responses(401, 404, 422, 500)
