"""
Service layer for business logic implementation.
Contains services for authentication, listing ownership, image sets and error handling.
"""

from .auth import AuthService
from .identity import FederatedIdentity, IdentityAssertionVerifier, TrustedAssertionVerifier
from .images import ImageSetManager, LocalImage, RemoteImage, UploadResolver
from .ownership import ListingAction, ListingOwnershipGuard
from .listing import ListingService
from .storage import StagedImageStore
from .user import UserService
from .error_handler import ErrorHandlerService

__all__ = [
    "AuthService",
    "FederatedIdentity",
    "IdentityAssertionVerifier",
    "TrustedAssertionVerifier",
    "ImageSetManager",
    "LocalImage",
    "RemoteImage",
    "UploadResolver",
    "ListingAction",
    "ListingOwnershipGuard",
    "ListingService",
    "StagedImageStore",
    "UserService",
    "ErrorHandlerService"
]
