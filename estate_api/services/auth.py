"""
Authentication service for sign-up, password sign-in, federated sign-in and
sign-out. Produces a verified identity or a typed failure.
"""

from typing import Optional, Tuple
from fastapi import Response
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from estate_api.repositories.user import UserRepository
from estate_api.models.user import User
from estate_api.services.identity import FederatedIdentity
from estate_api.utils.auth import TokenService, hash_password
from estate_api.utils.exceptions import (
    DuplicateEmailError,
    DuplicateUsernameError,
    InvalidCredentialsError,
    InvalidTokenError,
    StorageFailureError,
    UnauthorizedError,
    UserNotFoundError
)
import secrets
import uuid
import logging

logger = logging.getLogger(__name__)

USERNAME_SUFFIX_ATTEMPTS = 10


class AuthService:
    """
    Authentication flows for one request.

    Emails are compared exactly as stored. Sign-up never signs the user in;
    they have to call sign-in afterwards.
    """

    def __init__(self, db_session: AsyncSession, token_service: TokenService):
        self.db = db_session
        self.user_repo = UserRepository(db_session)
        self.tokens = token_service

    async def sign_up(self, name: str, email: str, password: str) -> User:
        """
        Register a new account with a local password.

        Args:
            name: Display name, must be unique
            email: Email address, must be unique
            password: Plain text password

        Returns:
            Created user

        Raises:
            DuplicateEmailError: If the email is already registered
            DuplicateUsernameError: If the display name is taken
            StorageFailureError: If the store fails
        """
        try:
            if await self.user_repo.email_exists(email):
                raise DuplicateEmailError(email)
            if await self.user_repo.username_exists(name):
                raise DuplicateUsernameError(name)

            user = await self.user_repo.create_user(
                email=email,
                username=name,
                hashed_password=hash_password(password)
            )
        except IntegrityError:
            # Lost a race with a concurrent sign-up
            if await self.user_repo.email_exists(email):
                raise DuplicateEmailError(email)
            raise DuplicateUsernameError(name)
        except SQLAlchemyError as e:
            logger.error(f"Sign-up failed in the credential store: {e}", exc_info=True)
            raise StorageFailureError()

        logger.info(f"User signed up: {user.id}")
        return user

    async def sign_in(self, email: str, password: str) -> Tuple[User, str]:
        """
        Authenticate with email and password.

        Returns:
            Tuple of (user, token)

        Raises:
            UserNotFoundError: If no account has this email
            InvalidCredentialsError: If the password does not match
        """
        user = await self._find_by_email(email)

        if user is None:
            logger.warning("Sign-in failed: unknown email")
            raise UserNotFoundError()

        if not user.verify_password(password):
            logger.warning(f"Sign-in failed: wrong password for user {user.id}")
            raise InvalidCredentialsError()

        token = self.tokens.issue(user.id)
        logger.info(f"User signed in: {user.id}")
        return user, token

    async def federated_sign_in(self, identity: FederatedIdentity) -> Tuple[User, str]:
        """
        Sign in with an identity already verified by an external provider.

        Creates the account on first use with an undisclosed random password
        and a username derived from the provider name.

        Returns:
            Tuple of (user, token)

        Raises:
            StorageFailureError: If the store fails
        """
        user = await self._find_by_email(identity.email)

        if user is None:
            try:
                username = await self._generate_username(identity.name)
                user = await self.user_repo.create_user(
                    email=identity.email,
                    username=username,
                    hashed_password=hash_password(secrets.token_urlsafe(24)),
                    avatar=identity.photo
                )
            except SQLAlchemyError as e:
                logger.error(f"Federated sign-up failed in the credential store: {e}", exc_info=True)
                raise StorageFailureError()
            logger.info(f"Federated account created: {user.id}")

        token = self.tokens.issue(user.id)
        logger.info(f"User signed in through federated identity: {user.id}")
        return user, token

    def sign_out(self, response: Response) -> None:
        """Clear the identity cookie. Always succeeds."""
        self.tokens.revoke(response)

    async def get_current_user(self, token: Optional[str]) -> User:
        """
        Resolve the user behind a token.

        Raises:
            UnauthorizedError: If the token is missing or invalid, or its user
                no longer exists
        """
        if not token:
            raise UnauthorizedError(reason="missing_token")

        try:
            user_id = self.tokens.verify(token)
        except InvalidTokenError as e:
            logger.warning(f"Rejected token: {e.detail}")
            raise UnauthorizedError(reason="invalid_token")

        user = await self.get_user_by_id(user_id)
        if user is None:
            logger.warning(f"Token subject {user_id} no longer exists")
            raise UnauthorizedError(reason="unknown_user")

        return user

    async def get_user_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        try:
            return await self.user_repo.get_by_id(user_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to load user {user_id}: {e}", exc_info=True)
            raise StorageFailureError()

    async def _find_by_email(self, email: str) -> Optional[User]:
        try:
            return await self.user_repo.get_by_email(email)
        except SQLAlchemyError as e:
            logger.error(f"Failed to look up user by email: {e}", exc_info=True)
            raise StorageFailureError()

    async def _generate_username(self, name: str) -> str:
        base = "".join(name.split()).lower() or "user"

        for _ in range(USERNAME_SUFFIX_ATTEMPTS):
            candidate = f"{base}{secrets.token_hex(2)}"
            if not await self.user_repo.username_exists(candidate):
                return candidate

        # Widen the suffix once the short space looks crowded
        return f"{base}{uuid.uuid4().hex[:12]}"
