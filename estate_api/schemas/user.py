"""
Pydantic schemas for user requests and responses.
Emails are validated but kept exactly as the client sent them.
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from email_validator import validate_email, EmailNotValidError
from typing import Optional
from datetime import datetime


def check_email(value: str) -> str:
    """
    Validate an email address without normalizing it.

    Raises:
        ValueError: If the address is not syntactically valid
    """
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as e:
        raise ValueError(str(e))
    return value


class UserResponse(BaseModel):
    """User response schema (excluding sensitive data)."""

    id: str = Field(
        ...,
        description="User's unique identifier",
        examples=["123e4567-e89b-12d3-a456-426614174000"]
    )
    username: str = Field(..., examples=["alice"])
    email: str = Field(..., examples=["alice@example.com"])
    avatar: str = Field(..., description="Avatar image URL")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_user(cls, user) -> "UserResponse":
        return cls(**user.to_dict())


class UserUpdate(BaseModel):
    """Profile update; omitted fields are left unchanged."""

    username: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    password: Optional[str] = Field(None, min_length=1, max_length=128)
    avatar: Optional[str] = Field(None, min_length=1, max_length=1024)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Username cannot be blank")
        return v

    @field_validator("email")
    @classmethod
    def validate_email_address(cls, v):
        return check_email(v) if v is not None else v

    @model_validator(mode="after")
    def require_one_field(self):
        if not self.model_dump(exclude_none=True):
            raise ValueError("No fields provided for update")
        return self
