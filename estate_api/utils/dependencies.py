"""
FastAPI dependency injection utilities for authentication and services.
Provides the identity cookie, per-request services and user extraction.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import APIKeyCookie
from sqlalchemy.ext.asyncio import AsyncSession
from estate_api.config import Settings, get_settings, settings
from estate_api.database import get_db
from estate_api.models.user import User
from estate_api.services.auth import AuthService
from estate_api.services.identity import IdentityAssertionVerifier, TrustedAssertionVerifier
from estate_api.services.images import ImageSetManager, UploadResolver
from estate_api.services.listing import ListingService
from estate_api.services.storage import StagedImageStore
from estate_api.services.user import UserService
from estate_api.utils.auth import TokenService


# Identity token carried in an HTTP-only cookie
token_cookie = APIKeyCookie(name=settings.auth_cookie_name, auto_error=False)


def get_token_service(app_settings: Settings = Depends(get_settings)) -> TokenService:
    return TokenService(app_settings)


def get_image_manager(app_settings: Settings = Depends(get_settings)) -> ImageSetManager:
    return ImageSetManager(
        max_images=app_settings.max_listing_images,
        upload_timeout=app_settings.upload_timeout_seconds
    )


def get_staged_image_store(app_settings: Settings = Depends(get_settings)) -> StagedImageStore:
    return StagedImageStore.from_settings(app_settings)


def get_upload_resolver(store: StagedImageStore = Depends(get_staged_image_store)) -> UploadResolver:
    """Upload collaborator used to resolve Local images at mutation time."""
    return store


def get_identity_verifier() -> IdentityAssertionVerifier:
    return TrustedAssertionVerifier()


async def get_auth_service(
    db: AsyncSession = Depends(get_db),
    token_service: TokenService = Depends(get_token_service)
) -> AuthService:
    """
    Get authentication service instance.

    Args:
        db: Database session
        token_service: Token issuing/verification service

    Returns:
        AuthService instance
    """
    return AuthService(db, token_service)


async def get_listing_service(
    db: AsyncSession = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
    image_manager: ImageSetManager = Depends(get_image_manager)
) -> ListingService:
    return ListingService(db, token_service, image_manager)


async def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


async def get_current_token(token: Optional[str] = Depends(token_cookie)) -> Optional[str]:
    """Raw identity token from the cookie, or None."""
    return token


async def get_current_user(
    token: Optional[str] = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> User:
    """
    Get current authenticated user from the identity cookie.

    Raises:
        UnauthorizedError: If the cookie is missing, the token is invalid, or
            its user no longer exists
    """
    return await auth_service.get_current_user(token)
