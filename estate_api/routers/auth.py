"""
Authentication API endpoints for sign-up, sign-in, federated sign-in and sign-out.
The identity token travels in an HTTP-only cookie, never in the body.
"""

from fastapi import APIRouter, Depends, Response, status
from estate_api.services.auth import AuthService
from estate_api.services.identity import IdentityAssertionVerifier
from estate_api.schemas.auth import (
    SignUpRequest,
    SignInRequest,
    GoogleAuthRequest,
    MessageResponse
)
from estate_api.schemas.user import UserResponse
from estate_api.schemas.error import get_auth_error_responses
from estate_api.utils.auth import TokenService
from estate_api.utils.dependencies import (
    get_auth_service,
    get_identity_verifier,
    get_token_service
)


router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/signup",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Sign up",
    description="Create an account with a password. Does not sign the user in.",
    responses=get_auth_error_responses()
)
async def sign_up(
    signup_data: SignUpRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    """
    Register a new user.

    Raises:
        DuplicateEmailError: If the email is already registered
        DuplicateUsernameError: If the username is taken
    """
    await auth_service.sign_up(
        name=signup_data.username,
        email=signup_data.email,
        password=signup_data.password
    )
    return MessageResponse(message="User created successfully")


@router.post(
    "/signin",
    response_model=UserResponse,
    status_code=status.HTTP_200_OK,
    summary="Sign in",
    description="Authenticate with email and password and set the identity cookie",
    responses=get_auth_error_responses()
)
async def sign_in(
    signin_data: SignInRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
    token_service: TokenService = Depends(get_token_service)
) -> UserResponse:
    """
    Authenticate a user and set the token cookie.

    Raises:
        UserNotFoundError: If no account has this email
        InvalidCredentialsError: If the password is wrong
    """
    user, token = await auth_service.sign_in(signin_data.email, signin_data.password)
    token_service.attach(response, token)
    return UserResponse.from_user(user)


@router.post(
    "/google",
    response_model=UserResponse,
    status_code=status.HTTP_200_OK,
    summary="Federated sign in",
    description="Sign in with a provider identity, creating the account on first use",
    responses=get_auth_error_responses()
)
async def google_sign_in(
    assertion: GoogleAuthRequest,
    response: Response,
    verifier: IdentityAssertionVerifier = Depends(get_identity_verifier),
    auth_service: AuthService = Depends(get_auth_service),
    token_service: TokenService = Depends(get_token_service)
) -> UserResponse:
    identity = await verifier.verify(assertion.model_dump())
    user, token = await auth_service.federated_sign_in(identity)
    token_service.attach(response, token)
    return UserResponse.from_user(user)


@router.get(
    "/signout",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Sign out",
    description="Clear the identity cookie. Always succeeds."
)
async def sign_out(
    response: Response,
    auth_service: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    auth_service.sign_out(response)
    return MessageResponse(message="User has been logged out")
