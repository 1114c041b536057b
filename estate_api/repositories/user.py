"""
User repository: the credential store adapter.
Persists user records; emails are matched exactly as stored.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from estate_api.repositories.base import BaseRepository
from estate_api.models.user import User, DEFAULT_AVATAR_URL
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """Repository for user records."""

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def create_user(
        self,
        email: str,
        username: str,
        hashed_password: Optional[str],
        avatar: Optional[str] = None
    ) -> User:
        """
        Create a new user from already-hashed credentials.

        Args:
            email: Email address, stored as given
            username: Unique display name
            hashed_password: Password hash or None for federation-only accounts
            avatar: Optional avatar URL

        Returns:
            Created user instance
        """
        user = await self.create({
            "email": email,
            "username": username,
            "hashed_password": hashed_password,
            "avatar": avatar or DEFAULT_AVATAR_URL,
        })
        logger.info(f"Created user: {user.username} (ID: {user.id})")
        return user

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by exact email address."""
        return await self.get_by_field("email", email)

    async def get_by_username(self, username: str) -> Optional[User]:
        return await self.get_by_field("username", username)

    async def email_exists(self, email: str) -> bool:
        return await self.exists_by_field("email", email)

    async def username_exists(self, username: str) -> bool:
        return await self.exists_by_field("username", username)
