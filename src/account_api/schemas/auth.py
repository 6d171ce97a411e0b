"""Authentication Pydantic v2 schemas.

Defines request/response schemas for registration, login and admin creation.
"""

from pydantic import BaseModel, EmailStr, Field

from account_api.models.user import UserRole
from account_api.schemas.user import UserView


class RegisterRequest(BaseModel):
    """Self-service registration."""

    first_name: str = Field(min_length=1, max_length=255)
    last_name: str = Field(min_length=1, max_length=255)
    email: EmailStr = Field(max_length=255)
    password: str
    password_confirmation: str | None = None
    role: UserRole | None = None


class CreateAdminRequest(BaseModel):
    """Admin-only creation of another admin account."""

    first_name: str = Field(min_length=1, max_length=255)
    last_name: str = Field(min_length=1, max_length=255)
    email: EmailStr = Field(max_length=255)
    password: str
    password_confirmation: str | None = None


class LoginRequest(BaseModel):
    """Login with email and password."""

    email: EmailStr
    password: str = Field(min_length=1)


class AuthResponse(BaseModel):
    """Returned by register and login: the user plus a freshly issued token."""

    message: str
    user: UserView
    access_token: str
    token_type: str = "Bearer"
