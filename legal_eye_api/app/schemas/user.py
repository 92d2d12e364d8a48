"""
Pydantic models for users and authentication payloads.

Request models accept the camelCase names sent by the web client
(``currentPassword``, ``profileImage``) as well as snake_case.
Password hashes never appear in a response model.
"""

import re
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_RE = re.compile(r"^\+?[0-9][0-9\s\-()]{6,19}$")
MIN_PASSWORD_LENGTH = 8


def normalize_email(value: str) -> str:
    value = value.strip().lower()
    if not EMAIL_RE.match(value):
        raise ValueError("Valid email is required")
    return value


class UserRegister(BaseModel):
    """Schema for registering a user.

    Only ``client`` and ``lawyer`` may be chosen at registration;
    administrators are created with ``manage.py create-admin``.
    """

    name: str = Field(..., examples=["Jane Doe"])
    email: str = Field(..., examples=["jane@example.com"])
    password: str = Field(..., examples=["password1"])
    phone: Optional[str] = Field(None, examples=["+15551234567"])
    role: Literal["client", "lawyer"] = "client"

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return normalize_email(v)

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return v

    @field_validator("phone")
    @classmethod
    def phone_valid(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        v = v.strip()
        if not PHONE_RE.match(v):
            raise ValueError("Valid phone number is required")
        return v


class UserLogin(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return normalize_email(v)

    @field_validator("password")
    @classmethod
    def password_required(cls, v: str) -> str:
        if not v:
            raise ValueError("Password is required")
        return v


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    profile_image: Optional[str] = Field(None, alias="profileImage")

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: Optional[str]) -> str:
        # an explicit null would clear a NOT NULL column
        if v is None or not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip()

    @field_validator("phone")
    @classmethod
    def phone_valid(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        v = v.strip()
        if not PHONE_RE.match(v):
            raise ValueError("Valid phone number is required")
        return v


class ChangePassword(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_password: str = Field(..., alias="currentPassword")
    new_password: str = Field(..., alias="newPassword")

    @field_validator("new_password")
    @classmethod
    def password_length(cls, v: str) -> str:
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return v


class ForgotPassword(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return normalize_email(v)


class ResetPassword(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: str
    new_password: str = Field(..., alias="newPassword")

    @field_validator("new_password")
    @classmethod
    def password_length(cls, v: str) -> str:
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return v


class UserRead(BaseModel):
    """Schema for reading a user from the API."""

    id: int
    name: str
    email: str
    phone: Optional[str] = None
    role: str
    address: Optional[str] = None
    profile_image: Optional[str] = None
    is_active: bool = True
    created_at: Optional[str] = None

    model_config = {
        "from_attributes": True,
    }


class AuthResult(BaseModel):
    """User plus a freshly issued session token."""

    user: UserRead
    token: str
