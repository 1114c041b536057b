"""
Pydantic schemas for request/response validation.
"""

# Authentication schemas
from .auth import (
    SignUpRequest,
    SignInRequest,
    GoogleAuthRequest,
    MessageResponse
)

# User schemas
from .user import (
    UserResponse,
    UserUpdate
)

# Listing schemas
from .listing import (
    RemoteImageIn,
    LocalImageIn,
    ImageIn,
    ListingCreate,
    ListingUpdate,
    ListingResponse,
    StagedImageResponse
)

# Error schemas
from .error import (
    ErrorDetail,
    ErrorResponse,
    APIErrorResponse
)

__all__ = [
    # Authentication
    "SignUpRequest",
    "SignInRequest",
    "GoogleAuthRequest",
    "MessageResponse",

    # User
    "UserResponse",
    "UserUpdate",

    # Listing
    "RemoteImageIn",
    "LocalImageIn",
    "ImageIn",
    "ListingCreate",
    "ListingUpdate",
    "ListingResponse",
    "StagedImageResponse",

    # Error
    "ErrorDetail",
    "ErrorResponse",
    "APIErrorResponse"
]
