"""Shared builders for tests: settings on a temporary SQLite file, store and service."""

import base64
import tempfile
import unittest
from datetime import datetime

from accounts.core.config import Settings
from accounts.core.database import (
    create_engine_from_settings,
    create_schema,
    create_session_factory,
)
from accounts.core.security import PasswordHasher, TokenService
from accounts.services.auth_service import AuthService
from accounts.services.identity_store import IdentityStore
from accounts.services.images import FileImagePersister

TEST_JWT_SECRET = "test-jwt-secret-0123456789abcdef-0123456789"
TEST_ADMIN_KEY = "test-admin-key"

# 1x1 transparent PNG
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)
PNG_DATA_URI = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii")


def make_settings(tmpdir: str, **overrides: object) -> Settings:
    """Settings pointing at a throwaway database and upload dir (no .env file)."""
    values: dict[str, object] = {
        "DATABASE_URL": f"sqlite+aiosqlite:///{tmpdir}/accounts.db",
        "JWT_SECRET": TEST_JWT_SECRET,
        "ADMIN_KEY": TEST_ADMIN_KEY,
        "BCRYPT_ROUNDS": 4,
        "UPLOAD_DIR": f"{tmpdir}/uploads",
        "AUTO_CREATE_SCHEMA": True,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeClock:
    """Settable clock for TokenService."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class StoreTestCase(unittest.IsolatedAsyncioTestCase):
    """Fresh on-disk SQLite database per test, with store and service wired up."""

    async def asyncSetUp(self) -> None:
        self.tmpdir = self.enterContext(tempfile.TemporaryDirectory())
        self.settings = make_settings(self.tmpdir)
        self.engine = create_engine_from_settings(self.settings)
        await create_schema(self.engine)
        self.store = IdentityStore(create_session_factory(self.engine))
        self.hasher = PasswordHasher(rounds=self.settings.BCRYPT_ROUNDS)
        self.tokens = TokenService.from_settings(self.settings)
        self.images = FileImagePersister.from_settings(self.settings)
        self.service = AuthService(
            store=self.store,
            hasher=self.hasher,
            tokens=self.tokens,
            images=self.images,
            default_avatar_url=self.settings.DEFAULT_AVATAR_URL,
        )

    async def asyncTearDown(self) -> None:
        await self.engine.dispose()
