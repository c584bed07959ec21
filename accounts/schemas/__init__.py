"""Pydantic request/response schemas."""

from accounts.schemas.admin import (
    AccountsListResponse,
    AdminAccountView,
    AdminVerifyRequest,
    AdminVerifyResponse,
    FlagRequest,
    FlagResponse,
)
from accounts.schemas.auth import (
    AccountView,
    AuthResponse,
    CurrentSessionResponse,
    IdentityView,
    LoginRequest,
    ProfileUpdateRequest,
    ProfileUpdateResponse,
    RegisterRequest,
)
from accounts.schemas.health import HealthResponse

__all__ = [
    "AccountView",
    "AccountsListResponse",
    "AdminAccountView",
    "AdminVerifyRequest",
    "AdminVerifyResponse",
    "AuthResponse",
    "CurrentSessionResponse",
    "FlagRequest",
    "FlagResponse",
    "HealthResponse",
    "IdentityView",
    "LoginRequest",
    "ProfileUpdateRequest",
    "ProfileUpdateResponse",
    "RegisterRequest",
]
