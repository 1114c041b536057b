"""
Authentication utilities for identity tokens and password hashing.
Provides JWT issuing/verification and the HTTP-only cookie that carries it.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from fastapi import Response
from jose import JWTError, ExpiredSignatureError, jwt
from passlib.context import CryptContext
from estate_api.config import Settings, get_settings
from estate_api.utils.exceptions import InvalidTokenError
import uuid


# PBKDF2-SHA256 keeps hashing independent of the bcrypt backend
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    """
    Hash password with a per-password salt.

    Args:
        password: Plain text password

    Returns:
        Hashed password string

    Raises:
        ValueError: If password is empty
    """
    if not password:
        raise ValueError("Password is required")

    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify password against hash.

    Args:
        plain_password: Plain text password
        hashed_password: Hashed password from database

    Returns:
        True if password matches, False otherwise
    """
    return pwd_context.verify(plain_password, hashed_password)


class TokenPayload:
    """JWT token payload structure."""

    def __init__(self, user_id: uuid.UUID, issued_at: datetime, expires_at: datetime):
        self.user_id = user_id
        self.issued_at = issued_at
        self.expires_at = expires_at

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenPayload":
        """Create TokenPayload from decoded claims."""
        return cls(
            user_id=uuid.UUID(data["sub"]),
            issued_at=datetime.fromtimestamp(data["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(data["exp"], tz=timezone.utc)
        )


class TokenService:
    """
    Issues and verifies signed, time-bounded identity tokens.

    Tokens are stateless: nothing is stored server-side, so revoking only
    clears the caller's cookie. A copy of an unexpired token presented
    elsewhere stays valid until it expires.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    @property
    def lifetime(self) -> timedelta:
        return timedelta(days=self.settings.access_token_expire_days)

    def issue(self, user_id: uuid.UUID, expires_delta: Optional[timedelta] = None) -> str:
        """
        Create a signed token for a user.

        Args:
            user_id: Identity placed in the ``sub`` claim
            expires_delta: Optional custom lifetime (defaults to the policy)

        Returns:
            Encoded JWT string
        """
        issued_at = datetime.now(timezone.utc)
        expire = issued_at + (expires_delta if expires_delta is not None else self.lifetime)

        to_encode = {
            "sub": str(user_id),
            "iat": issued_at,
            "exp": expire,
        }

        return jwt.encode(
            to_encode,
            self.settings.jwt_secret_key,
            algorithm=self.settings.jwt_algorithm
        )

    def decode(self, token: str) -> TokenPayload:
        """
        Verify and decode a token into its payload.

        Raises:
            InvalidTokenError: On bad signature, malformed payload or expiry
        """
        if not token:
            raise InvalidTokenError("Token is required")

        try:
            claims = jwt.decode(
                token,
                self.settings.jwt_secret_key,
                algorithms=[self.settings.jwt_algorithm]
            )
        except ExpiredSignatureError:
            raise InvalidTokenError("Token has expired")
        except JWTError as e:
            raise InvalidTokenError(f"Invalid token: {e}")

        if not claims.get("sub") or "exp" not in claims or "iat" not in claims:
            raise InvalidTokenError("Invalid token payload")

        try:
            return TokenPayload.from_dict(claims)
        except (ValueError, TypeError) as e:
            raise InvalidTokenError(f"Invalid token payload: {e}")

    def verify(self, token: str) -> uuid.UUID:
        """Return the user identity carried by a valid token."""
        return self.decode(token).user_id

    def attach(self, response: Response, token: str) -> None:
        """Set the token as an HTTP-only cookie on the response."""
        response.set_cookie(
            key=self.settings.auth_cookie_name,
            value=token,
            max_age=int(self.lifetime.total_seconds()),
            httponly=True,
            secure=self.settings.auth_cookie_secure,
            samesite="lax",
            path="/",
        )

    def revoke(self, response: Response) -> None:
        """Instruct the client to drop the token cookie."""
        response.delete_cookie(
            key=self.settings.auth_cookie_name,
            path="/",
            httponly=True,
            secure=self.settings.auth_cookie_secure,
            samesite="lax",
        )
