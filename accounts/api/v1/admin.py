"""Admin endpoints: admin key check, account list and moderation flags."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Security, status
from fastapi.responses import JSONResponse
from fastapi.security import APIKeyHeader

from accounts.api.v1.auth import get_auth_service, get_current_identity, get_settings_dep
from accounts.core.config import Settings
from accounts.core.security import TokenIdentity, constant_time_equals
from accounts.schemas.admin import (
    AccountsListResponse,
    AdminVerifyRequest,
    AdminVerifyResponse,
    FlagRequest,
    FlagResponse,
)
from accounts.services.auth_service import AuthService

logger = logging.getLogger(__name__)
router = APIRouter()
admin_key_header = APIKeyHeader(name="X-Admin-Key", auto_error=False)


def require_admin_key(
    settings: Annotated[Settings, Depends(get_settings_dep)],
    key: Annotated[str | None, Security(admin_key_header)],
) -> None:
    """Dependency: X-Admin-Key must match ADMIN_KEY. Raises 401 otherwise."""
    if key is None or not constant_time_equals(key, settings.ADMIN_KEY.get_secret_value()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin key",
        )


@router.post("/verify", response_model=AdminVerifyResponse)
def verify_admin_key(
    body: AdminVerifyRequest,
    settings: Annotated[Settings, Depends(get_settings_dep)],
) -> AdminVerifyResponse | JSONResponse:
    """Check an admin key before the client shows admin tools."""
    if body.key and constant_time_equals(body.key, settings.ADMIN_KEY.get_secret_value()):
        return AdminVerifyResponse(verified=True)
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"verified": False, "detail": "Invalid admin key"},
    )


@router.get(
    "/accounts",
    response_model=AccountsListResponse,
    dependencies=[Depends(require_admin_key)],
)
async def list_accounts(
    _identity: Annotated[TokenIdentity, Depends(get_current_identity)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> AccountsListResponse:
    """List all accounts with their moderation flags."""
    return AccountsListResponse(accounts=await auth_service.list_accounts())


@router.post(
    "/flags",
    response_model=FlagResponse,
    dependencies=[Depends(require_admin_key)],
)
async def set_flag(
    body: FlagRequest,
    identity: Annotated[TokenIdentity, Depends(get_current_identity)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> FlagResponse:
    """Ban/unban or disable/enable an account. Already-issued tokens are not revoked."""
    await auth_service.set_moderation_flag(body.username, body.flag, body.value)
    logger.info(
        "Moderation flag set by admin",
        extra={"actor_id": identity.account_id, "flag": body.flag.value},
    )
    return FlagResponse(ok=True)
