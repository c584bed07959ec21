"""Application configuration loaded from environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Allowed URL schemes for DATABASE_URL (module-level so validators can use it).
VALID_DATABASE_URL_PREFIXES = (
    "sqlite+aiosqlite://",
    "postgresql+asyncpg://",
)

VALID_JWT_ALGORITHMS = frozenset({"HS256", "HS384", "HS512"})

JWT_SECRET_MIN_LEN = 32


class Settings(BaseSettings):
    """Validated application settings from env and optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    APP_ENV: Literal["dev", "prod"] = "dev"
    DEBUG: bool = False
    API_V1_PREFIX: str = "/api/v1"
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    DATABASE_URL: str = "sqlite+aiosqlite:///./accounts.db"
    # Create the accounts table on startup instead of running alembic (dev/test only).
    AUTO_CREATE_SCHEMA: bool = False

    # Token signing and admin access: no defaults, startup fails when unset.
    JWT_SECRET: SecretStr
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 60
    ADMIN_KEY: SecretStr

    BCRYPT_ROUNDS: int = 10

    # Avatar uploads: written to UPLOAD_DIR, served under UPLOAD_URL_PREFIX
    UPLOAD_DIR: str = "./public/uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"
    AVATAR_MAX_BYTES: int = 10 * 1024 * 1024
    DEFAULT_AVATAR_URL: str = "https://i.imgur.com/6VBx3io.png"

    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    # When True, every token-authenticated call re-reads the account and
    # rejects banned, disabled or deleted accounts. Tokens are stateless otherwise.
    ENFORCE_MODERATION_ON_TOKEN_USE: bool = False

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("DATABASE_URL must be set and non-empty")
        if not any(v.strip().startswith(prefix) for prefix in VALID_DATABASE_URL_PREFIXES):
            raise ValueError(
                "DATABASE_URL must use an async driver "
                "(sqlite+aiosqlite:// or postgresql+asyncpg://)"
            )
        return v.strip()

    @field_validator("JWT_SECRET")
    @classmethod
    def validate_jwt_secret(cls, v: SecretStr) -> SecretStr:
        secret = v.get_secret_value()
        if not secret or not secret.strip():
            raise ValueError("JWT_SECRET must be set and non-empty")
        if len(secret) < JWT_SECRET_MIN_LEN:
            raise ValueError(
                f"JWT_SECRET must be at least {JWT_SECRET_MIN_LEN} characters"
            )
        return v

    @field_validator("JWT_ALGORITHM")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        v = (v or "").strip().upper()
        if v not in VALID_JWT_ALGORITHMS:
            raise ValueError("JWT_ALGORITHM must be one of HS256, HS384, HS512")
        return v

    @field_validator("JWT_EXPIRE_MINUTES")
    @classmethod
    def validate_jwt_expire_minutes(cls, v: int) -> int:
        if v < 1 or v > 10080:
            raise ValueError(
                "JWT_EXPIRE_MINUTES must be between 1 and 10080 (1 min to 7 days)"
            )
        return v

    @field_validator("ADMIN_KEY")
    @classmethod
    def validate_admin_key(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value() or not v.get_secret_value().strip():
            raise ValueError("ADMIN_KEY must be set and non-empty")
        return v

    @field_validator("BCRYPT_ROUNDS")
    @classmethod
    def validate_bcrypt_rounds(cls, v: int) -> int:
        if v < 4 or v > 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31")
        return v

    @field_validator("UPLOAD_URL_PREFIX")
    @classmethod
    def validate_upload_url_prefix(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v.startswith("/"):
            raise ValueError("UPLOAD_URL_PREFIX must start with '/' (e.g. /uploads)")
        return v

    @field_validator("AVATAR_MAX_BYTES")
    @classmethod
    def validate_avatar_max_bytes(cls, v: int) -> int:
        if v < 1 or v > 50 * 1024 * 1024:
            raise ValueError("AVATAR_MAX_BYTES must be between 1 and 52428800 (50 MB)")
        return v


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance (safe to call from dependencies)."""
    return Settings()
