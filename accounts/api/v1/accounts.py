"""Account endpoints: registration and self-service profile update."""

from typing import Annotated

from fastapi import APIRouter, Depends

from accounts.api.v1.auth import get_auth_service, get_current_identity
from accounts.core.security import TokenIdentity
from accounts.schemas.auth import (
    AuthResponse,
    ProfileUpdateRequest,
    ProfileUpdateResponse,
    RegisterRequest,
)
from accounts.services.auth_service import AuthService

router = APIRouter()


@router.post("", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResponse:
    """
    Create an account. Optional `avatar` is a base64 `data:image/...` URI.

    Returns 409 if the username is taken (including when a concurrent request wins).
    """
    return await auth_service.register(body.username, body.password, body.avatar)


@router.patch("/self", response_model=ProfileUpdateResponse, response_model_exclude_none=True)
async def update_self(
    body: ProfileUpdateRequest,
    identity: Annotated[TokenIdentity, Depends(get_current_identity)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> ProfileUpdateResponse:
    """
    Update the authenticated account only. Send any of newUsername, newPassword,
    newAvatar; currentPassword is required for username or password changes.
    A new token is returned when the username changes.
    """
    return await auth_service.update_profile(
        identity,
        new_username=body.new_username,
        current_password=body.current_password,
        new_password=body.new_password,
        new_avatar=body.new_avatar,
    )
