"""Request/response schemas for registration, sessions and self-service profile updates."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """JSON uses camelCase keys; Python code uses field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterRequest(CamelModel):
    """New account credentials and optional avatar data URI."""

    username: str = Field(default="", max_length=255, description="Username (case-sensitive)")
    password: str = Field(default="", max_length=128, description="Password")
    avatar: str | None = Field(default=None, description="data:image/...;base64,... payload")


class LoginRequest(CamelModel):
    """Credentials for login."""

    username: str = Field(default="", max_length=255, description="Username")
    password: str = Field(default="", max_length=128, description="Password")


class AccountView(CamelModel):
    """Public account fields; never includes the password hash."""

    id: int
    username: str
    avatar: str | None = Field(default=None, description="Avatar locator")


class AuthResponse(CamelModel):
    """Account plus a fresh bearer token (registration and login)."""

    account: AccountView
    token: str = Field(..., description="Bearer access token")


class ProfileUpdateRequest(CamelModel):
    """
    Partial self-service update. The account is always the token's account;
    newUsername is only ever a proposed value, never a selector.
    """

    new_username: str | None = Field(default=None, max_length=255)
    current_password: str | None = Field(default=None, max_length=128)
    new_password: str | None = Field(default=None, max_length=128)
    new_avatar: str | None = None


class ProfileUpdateResponse(CamelModel):
    """Updated account; token is only present when the username changed."""

    account: AccountView
    token: str | None = None


class IdentityView(CamelModel):
    """Identity asserted by a verified token."""

    id: int
    username: str
    issued_at: datetime
    expires_at: datetime


class CurrentSessionResponse(CamelModel):
    """Response for GET /sessions/current."""

    valid: bool = True
    identity: IdentityView
