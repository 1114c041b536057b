"""
Utility modules for the Estate Listing API.
"""

from .auth import (
    hash_password,
    verify_password,
    TokenPayload,
    TokenService
)

from .exceptions import (
    APIException,
    ValidationError,
    NotFoundError,
    UnauthorizedError,
    ConflictError,
    StorageFailureError,
    DuplicateEmailError,
    DuplicateUsernameError,
    UserNotFoundError,
    InvalidCredentialsError,
    InvalidTokenError,
    ListingNotFoundError,
    EmptyImageSetError,
    TooManyImagesError,
    UnresolvedLocalImageError,
    ImageIndexError,
    FileUploadError
)

# Dependencies are imported directly where needed to avoid circular imports

__all__ = [
    # Auth utilities
    "hash_password",
    "verify_password",
    "TokenPayload",
    "TokenService",

    # Exceptions
    "APIException",
    "ValidationError",
    "NotFoundError",
    "UnauthorizedError",
    "ConflictError",
    "StorageFailureError",
    "DuplicateEmailError",
    "DuplicateUsernameError",
    "UserNotFoundError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "ListingNotFoundError",
    "EmptyImageSetError",
    "TooManyImagesError",
    "UnresolvedLocalImageError",
    "ImageIndexError",
    "FileUploadError",
]
