"""
Custom exception classes for the Estate Listing API.
Provides structured error handling with appropriate HTTP status codes.
"""

from typing import Any, Dict, Optional, List
from fastapi import HTTPException, status


class APIException(HTTPException):
    """Base API exception class."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code


class ValidationError(APIException):
    """Validation error exception."""

    def __init__(
        self,
        detail: str,
        field_errors: Optional[List[Dict[str, str]]] = None,
        error_code: str = "VALIDATION_ERROR"
    ):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            error_code=error_code
        )
        self.field_errors = field_errors or []


class NotFoundError(APIException):
    """Resource not found exception."""

    def __init__(self, resource: str, resource_id: Optional[str] = None, error_code: str = "NOT_FOUND"):
        detail = f"{resource} not found"
        if resource_id:
            detail += f" with ID: {resource_id}"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code=error_code
        )


class UnauthorizedError(APIException):
    """
    Authentication or ownership failure.

    Every cause shares the same outward code and message; ``reason`` is kept
    for server-side logging only.
    """

    def __init__(self, detail: str = "Unauthorized", reason: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code="UNAUTHORIZED"
        )
        self.reason = reason


class ConflictError(APIException):
    """Resource conflict exception."""

    def __init__(self, detail: str, error_code: str = "CONFLICT"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code=error_code
        )


class StorageFailureError(APIException):
    """
    The store or another external collaborator failed.
    Surfaces as a generic server fault without internal detail.
    """

    def __init__(self, detail: str = "Internal server error"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            error_code="INTERNAL_SERVER_ERROR"
        )


# Authentication specific exceptions
class DuplicateEmailError(ConflictError):
    def __init__(self, email: str):
        super().__init__(f"Email '{email}' is already registered", error_code="DUPLICATE_EMAIL")


class DuplicateUsernameError(ConflictError):
    def __init__(self, username: str):
        super().__init__(f"Username '{username}' is already taken", error_code="DUPLICATE_USERNAME")


class UserNotFoundError(NotFoundError):
    def __init__(self, identifier: Optional[str] = None):
        super().__init__("User", identifier, error_code="USER_NOT_FOUND")


class InvalidCredentialsError(APIException):
    """Invalid login credentials exception."""

    def __init__(self, detail: str = "Invalid email or password"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code="INVALID_CREDENTIALS"
        )


class InvalidTokenError(APIException):
    """Token is malformed, badly signed or expired."""

    def __init__(self, detail: str = "Invalid token"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code="INVALID_TOKEN"
        )


# Listing specific exceptions
class ListingNotFoundError(NotFoundError):
    def __init__(self, listing_id: str):
        super().__init__("Listing", listing_id)


# Image set exceptions
class EmptyImageSetError(ValidationError):
    def __init__(self):
        super().__init__("A listing needs at least one image", error_code="EMPTY_IMAGE_SET")


class TooManyImagesError(ValidationError):
    def __init__(self, count: int, limit: int):
        super().__init__(
            f"A listing can have at most {limit} images ({count} given)",
            error_code="TOO_MANY_IMAGES"
        )
        self.count = count
        self.limit = limit


class UnresolvedLocalImageError(ValidationError):
    def __init__(self, handle: str, reason: str = "upload failed"):
        super().__init__(
            f"Image '{handle}' could not be uploaded: {reason}",
            error_code="UNRESOLVED_LOCAL_IMAGE"
        )
        self.handle = handle


class ImageIndexError(ValidationError):
    def __init__(self, index: int, size: int):
        super().__init__(
            f"Image position {index} is out of range for {size} images",
            error_code="IMAGE_INDEX_OUT_OF_RANGE"
        )


# File upload exceptions
class FileUploadError(ValidationError):
    """File upload error exception."""

    def __init__(self, detail: str):
        super().__init__(f"File upload error: {detail}", error_code="FILE_UPLOAD_ERROR")
