"""Auth schemas."""

from typing import Optional

from pydantic import EmailStr, Field

from backoffice.schemas.base import BaseSchema


class LoginRequest(BaseSchema):
    """Password sign-in for administrators."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class CurrentUserResponse(BaseSchema):
    """Current authenticated user info."""

    uid: str
    email: Optional[str] = None
    role: Optional[str] = None
    full_name: Optional[str] = None
    profile_validated: bool = False


class LoginResponse(BaseSchema):
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    token_type: str = "bearer"
    user: CurrentUserResponse


class PasswordResetRequest(BaseSchema):
    email: EmailStr
