"""
User profile service: lookup, self-service update and account deletion.
"""

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from estate_api.models.user import User
from estate_api.repositories.listing import ListingRepository
from estate_api.repositories.user import UserRepository
from estate_api.schemas.user import UserUpdate
from estate_api.utils.auth import hash_password
from estate_api.utils.exceptions import (
    ConflictError,
    DuplicateEmailError,
    DuplicateUsernameError,
    StorageFailureError,
    UnauthorizedError,
    UserNotFoundError
)
import uuid
import logging

logger = logging.getLogger(__name__)


class UserService:
    """Profile operations. Every mutation is restricted to the user's own id."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.user_repo = UserRepository(db_session)
        self.listing_repo = ListingRepository(db_session)

    async def get_user(self, user_id: uuid.UUID) -> User:
        """
        Get a user's public profile.

        Raises:
            UserNotFoundError: If the user does not exist
        """
        try:
            user = await self.user_repo.get_by_id(user_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to load user {user_id}: {e}", exc_info=True)
            raise StorageFailureError()

        if user is None:
            raise UserNotFoundError(str(user_id))
        return user

    async def update_profile(self, user_id: uuid.UUID, user_data: UserUpdate, current_user: User) -> User:
        """
        Update the current user's own profile.

        Args:
            user_id: Target user, must be the current user
            user_data: Fields to change
            current_user: Authenticated user

        Returns:
            Updated user

        Raises:
            UnauthorizedError: If the target is someone else
            DuplicateEmailError: If the new email belongs to another account
            DuplicateUsernameError: If the new username is taken
        """
        self._require_self(user_id, current_user, "update")

        changes = user_data.model_dump(exclude_none=True)

        try:
            if "email" in changes and changes["email"] != current_user.email:
                if await self.user_repo.email_exists(changes["email"]):
                    raise DuplicateEmailError(changes["email"])

            if "username" in changes and changes["username"] != current_user.username:
                if await self.user_repo.username_exists(changes["username"]):
                    raise DuplicateUsernameError(changes["username"])

            if "password" in changes:
                changes["hashed_password"] = hash_password(changes.pop("password"))

            user = await self.user_repo.update(current_user, changes)
        except IntegrityError:
            raise ConflictError("Email or username is already in use")
        except SQLAlchemyError as e:
            logger.error(f"Failed to update user {user_id}: {e}", exc_info=True)
            raise StorageFailureError()

        logger.info(f"User {user_id} updated profile fields: {sorted(changes)}")
        return user

    async def delete_account(self, user_id: uuid.UUID, current_user: User) -> None:
        """
        Delete the current user's account together with their listings.

        Raises:
            UnauthorizedError: If the target is someone else
        """
        self._require_self(user_id, current_user, "delete")

        try:
            # One transaction: listings go only if the account goes too
            removed = await self.listing_repo.delete_by_owner(user_id, commit=False)
            await self.user_repo.delete(user_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to delete user {user_id}: {e}", exc_info=True)
            raise StorageFailureError()

        logger.info(f"User {user_id} deleted their account and {removed} listings")

    @staticmethod
    def _require_self(user_id: uuid.UUID, current_user: User, action: str) -> None:
        if current_user.id != user_id:
            logger.warning(f"User {current_user.id} tried to {action} user {user_id}")
            raise UnauthorizedError(reason="not_self")
