"""
User profile API endpoints. Mutations only apply to the signed-in user's own id.
"""

from fastapi import APIRouter, Depends, Path, Response, status
from typing import List
from uuid import UUID

from estate_api.models.user import User
from estate_api.services.listing import ListingService
from estate_api.services.user import UserService
from estate_api.schemas.auth import MessageResponse
from estate_api.schemas.listing import ListingResponse
from estate_api.schemas.user import UserResponse, UserUpdate
from estate_api.schemas.error import get_auth_error_responses
from estate_api.utils.auth import TokenService
from estate_api.utils.dependencies import (
    get_current_user,
    get_listing_service,
    get_token_service,
    get_user_service
)


router = APIRouter(prefix="/user", tags=["Users"])


@router.get(
    "/listings/{user_id}",
    response_model=List[ListingResponse],
    status_code=status.HTTP_200_OK,
    summary="List own listings",
    responses=get_auth_error_responses()
)
async def get_user_listings(
    user_id: UUID = Path(..., description="User ID, must be the signed-in user"),
    current_user: User = Depends(get_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> List[ListingResponse]:
    listings = await listing_service.get_user_listings(user_id, current_user)
    return [ListingResponse.from_listing(listing) for listing in listings]


@router.post(
    "/update/{user_id}",
    response_model=UserResponse,
    status_code=status.HTTP_200_OK,
    summary="Update own profile",
    responses=get_auth_error_responses()
)
async def update_user(
    user_data: UserUpdate,
    user_id: UUID = Path(..., description="User ID, must be the signed-in user"),
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
) -> UserResponse:
    """
    Update username, email, password or avatar.

    Raises:
        UnauthorizedError: If user_id is not the signed-in user
        DuplicateEmailError: If the new email is already registered
        DuplicateUsernameError: If the new username is taken
    """
    user = await user_service.update_profile(user_id, user_data, current_user)
    return UserResponse.from_user(user)


@router.delete(
    "/delete/{user_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete own account",
    description="Delete the account and all of its listings, then clear the identity cookie",
    responses=get_auth_error_responses()
)
async def delete_user(
    response: Response,
    user_id: UUID = Path(..., description="User ID, must be the signed-in user"),
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
    token_service: TokenService = Depends(get_token_service)
) -> MessageResponse:
    await user_service.delete_account(user_id, current_user)
    token_service.revoke(response)
    return MessageResponse(message="User has been deleted")


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    status_code=status.HTTP_200_OK,
    summary="Get user profile",
    responses=get_auth_error_responses()
)
async def get_user(
    user_id: UUID = Path(..., description="User ID"),
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
) -> UserResponse:
    user = await user_service.get_user(user_id)
    return UserResponse.from_user(user)
