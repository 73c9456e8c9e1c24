"""Pydantic schemas for authentication."""
from __future__ import annotations
from datetime import datetime
from typing import Annotated, Optional
from email_validator import EmailNotValidError, validate_email
from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from todo_api.models.user import AuthProvider


def _check_email(value: str) -> str:
    """Reject malformed addresses but keep the submitted string as-is.

    Emails are matched exactly, so the normalized form returned by
    email_validator (lowercased domain) is not used.
    """
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValueError(f"value is not a valid email address: {exc}") from exc
    return value


Email = Annotated[str, AfterValidator(_check_email)]


class RegisterRequest(BaseModel):
    email: Email
    name: str = Field(min_length=1)
    password: str = Field(min_length=6)

    model_config = ConfigDict(extra="forbid")


class LoginRequest(BaseModel):
    email: Email
    password: str = Field(min_length=1)

    model_config = ConfigDict(extra="forbid")


class AuthenticatedUser(BaseModel):
    """Result of every successful sign-in path."""

    id: int
    email: str
    name: Optional[str] = None
    token: str
    picture: Optional[str] = None


class FederatedProfile(BaseModel):
    """Identity returned by an external provider after a completed OAuth handshake."""

    email: Optional[str] = None
    display_name: Optional[str] = None
    picture_url: Optional[str] = None


class TokenClaims(BaseModel):
    sub: int
    email: str
    name: Optional[str] = None
    picture: Optional[str] = None
    iat: int
    exp: int


class UserOut(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    auth_provider: AuthProvider
    profile_picture: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}
