"""
Pydantic schemas for authentication requests and responses.
Handles sign-up, sign-in and federated sign-in payloads.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional
from estate_api.schemas.user import check_email


class SignUpRequest(BaseModel):
    """Sign-up request schema."""

    username: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Public display name, must be unique",
        examples=["alice"]
    )
    email: str = Field(
        ...,
        max_length=255,
        description="Email address, matched exactly as entered",
        examples=["alice@example.com"]
    )
    password: str = Field(
        ...,
        min_length=1,
        max_length=128,
        description="User's password",
        examples=["pw123"]
    )

    @field_validator("username")
    @classmethod
    def validate_username(cls, v):
        if not v.strip():
            raise ValueError("Username cannot be blank")
        return v

    @field_validator("email")
    @classmethod
    def validate_email_address(cls, v):
        return check_email(v)


class SignInRequest(BaseModel):
    """Sign-in request schema."""

    email: str = Field(..., max_length=255, examples=["alice@example.com"])
    password: str = Field(..., min_length=1, max_length=128, examples=["pw123"])


class GoogleAuthRequest(BaseModel):
    """
    Identity asserted by the provider SDK on the client.
    It is checked by the configured IdentityAssertionVerifier.
    """

    name: str = Field(..., min_length=1, max_length=255, examples=["Alice Smith"])
    email: str = Field(..., max_length=255, examples=["alice@example.com"])
    photo: Optional[str] = Field(None, max_length=1024)


class MessageResponse(BaseModel):
    """Plain confirmation message."""

    success: bool = True
    message: str
