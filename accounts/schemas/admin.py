"""Schemas for the admin key check and moderation endpoints."""

from datetime import datetime

from pydantic import Field

from accounts.schemas.auth import CamelModel
from accounts.services.moderation import ModerationFlag


class AdminVerifyRequest(CamelModel):
    key: str = Field(default="", description="Admin key")


class AdminVerifyResponse(CamelModel):
    verified: bool
    detail: str | None = None


class FlagRequest(CamelModel):
    """Set or clear one moderation flag on the named account."""

    username: str = Field(..., min_length=1, max_length=255)
    flag: ModerationFlag
    value: bool


class FlagResponse(CamelModel):
    ok: bool = True


class AdminAccountView(CamelModel):
    """Account entry for the admin list (no password hash)."""

    id: int
    username: str
    avatar: str | None = None
    banned: bool
    disabled: bool
    created_at: datetime | None = None


class AccountsListResponse(CamelModel):
    accounts: list[AdminAccountView]
