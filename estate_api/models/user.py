"""
User model with credential storage.
Handles accounts created by password sign-up and by federated sign-in.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column
from estate_api.database import Base
from estate_api.utils.auth import verify_password
from typing import Optional


DEFAULT_AVATAR_URL = "https://cdn-icons-png.flaticon.com/512/149/149071.png"


class User(Base):
    """
    User model for authentication and listing ownership.
    Federation-only accounts may have no usable local password.
    """

    __tablename__ = "users"

    # Compared exactly as stored, never case-folded
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
        comment="User email address - unique, stored exactly as given"
    )

    username: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
        comment="Public display name"
    )

    hashed_password: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Salted password hash, absent for federation-only accounts"
    )

    avatar: Mapped[str] = mapped_column(
        String(1024),
        nullable=False,
        default=DEFAULT_AVATAR_URL,
        comment="Avatar image URL"
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username})>"

    @property
    def has_local_password(self) -> bool:
        return bool(self.hashed_password)

    def verify_password(self, password: str) -> bool:
        """
        Verify a password against the stored hash.

        Args:
            password: Plain text password to verify

        Returns:
            True if password matches, False otherwise (including when the
            account has no local password)
        """
        if not self.hashed_password:
            return False
        return verify_password(password, self.hashed_password)

    def to_dict(self) -> dict:
        """
        Convert user to dictionary (excluding sensitive data).

        Returns:
            Dictionary representation of user
        """
        return {
            "id": str(self.id),
            "username": self.username,
            "email": self.email,
            "avatar": self.avatar,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
