"""FastAPI application factory. No business logic; only wiring, middleware and error mapping.

Run with: uvicorn accounts.main:create_app --factory
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

from accounts.api.v1 import router as v1_router
from accounts.core.config import Settings, get_settings
from accounts.core.database import (
    create_engine_from_settings,
    create_schema,
    create_session_factory,
)
from accounts.core.security import PasswordHasher, TokenService
from accounts.services.auth_service import AuthService
from accounts.services.errors import AccountServiceError, ServerError
from accounts.services.identity_store import IdentityStore
from accounts.services.images import FileImagePersister

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the app. Settings are read (and required secrets enforced) here, not at import."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        engine = create_engine_from_settings(settings)
        if settings.AUTO_CREATE_SCHEMA:
            await create_schema(engine)
        session_factory = create_session_factory(engine)
        tokens = TokenService.from_settings(settings)
        app.state.session_factory = session_factory
        app.state.tokens = tokens
        app.state.auth_service = AuthService(
            store=IdentityStore(session_factory),
            hasher=PasswordHasher(rounds=settings.BCRYPT_ROUNDS),
            tokens=tokens,
            images=FileImagePersister.from_settings(settings),
            default_avatar_url=settings.DEFAULT_AVATAR_URL,
        )
        logger.info("Account service started", extra={"environment": settings.APP_ENV})
        try:
            yield
        finally:
            await engine.dispose()

    app = FastAPI(
        title="Community Accounts API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Admin-Key"],
    )

    @app.exception_handler(AccountServiceError)
    async def account_error_handler(request: Request, exc: AccountServiceError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(SQLAlchemyError)
    async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error(
            "Account store error",
            exc_info=exc,
            extra={"path": request.url.path, "method": request.method},
        )
        error = ServerError()
        return JSONResponse(status_code=error.status_code, content={"detail": error.message})

    app.include_router(v1_router, prefix=settings.API_V1_PREFIX)

    upload_dir = Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount(
        settings.UPLOAD_URL_PREFIX,
        StaticFiles(directory=str(upload_dir)),
        name="uploads",
    )

    @app.get("/")
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {"message": "Community Accounts API"}

    return app
