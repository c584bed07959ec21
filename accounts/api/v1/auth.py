"""Session endpoints (login, current token) and auth dependencies."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from accounts.core.config import Settings
from accounts.core.security import TokenExpired, TokenIdentity, TokenInvalid, TokenService
from accounts.schemas.auth import (
    AuthResponse,
    CurrentSessionResponse,
    IdentityView,
    LoginRequest,
)
from accounts.services.auth_service import AuthService
from accounts.services.errors import AuthError

router = APIRouter()
security = HTTPBearer(auto_error=False)


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_auth_service(request: Request) -> AuthService:
    """The service instance built once in the app lifespan."""
    return request.app.state.auth_service


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    settings: Annotated[Settings, Depends(get_settings_dep)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> TokenIdentity:
    """
    Dependency: require a valid Bearer token and return its identity.

    Raises 401 if the token is missing, invalid or expired. With
    ENFORCE_MODERATION_ON_TOKEN_USE, raises 403 for banned, disabled or deleted accounts.
    """
    if credentials is None:
        raise _unauthorized("Authorization token required")
    try:
        identity = tokens.verify(credentials.credentials)
    except TokenExpired:
        raise _unauthorized("Token has expired")
    except TokenInvalid:
        raise _unauthorized("Invalid token")

    if settings.ENFORCE_MODERATION_ON_TOKEN_USE:
        try:
            await auth_service.ensure_eligible(identity)
        except AuthError as e:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message) from e
    return identity


@router.post("", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResponse:
    """
    Authenticate with username and password; returns the account and a JWT.
    Include the token in the Authorization header as: Bearer <token>
    """
    return await auth_service.login(body.username, body.password)


@router.get("/current", response_model=CurrentSessionResponse)
async def current_session(
    identity: Annotated[TokenIdentity, Depends(get_current_identity)],
) -> CurrentSessionResponse:
    """Echo the identity carried by the presented token."""
    return CurrentSessionResponse(
        valid=True,
        identity=IdentityView(
            id=identity.account_id,
            username=identity.username,
            issued_at=identity.issued_at,
            expires_at=identity.expires_at,
        ),
    )
