"""Password hashing, signed access tokens, and secret comparison."""

import hmac
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from accounts.core.config import Settings

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of input.
BCRYPT_MAX_PASSWORD_BYTES = 72

# Min/max lengths for username and password validation.
USERNAME_MIN_LEN = 1
USERNAME_MAX_LEN = 255
PASSWORD_MIN_LEN = 1
PASSWORD_MAX_LEN = 128

REQUIRED_TOKEN_CLAIMS = ("sub", "username", "iat", "exp", "jti")


def _utcnow() -> datetime:
    return datetime.now(UTC)


def constant_time_equals(supplied: str, expected: str) -> bool:
    """Compare two secrets without leaking where they first differ."""
    return hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))


class PasswordHasher:
    """Salted bcrypt hashing with a configurable work factor."""

    def __init__(self, rounds: int = 10) -> None:
        self.rounds = rounds

    @staticmethod
    def _encode(plain_password: str) -> bytes:
        return plain_password.encode("utf-8")[:BCRYPT_MAX_PASSWORD_BYTES]

    def hash(self, plain_password: str) -> str:
        """Hash a plain-text password for storage. A fresh salt is drawn on every call."""
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(self._encode(plain_password), salt).decode("utf-8")

    def verify(self, plain_password: str, hashed: str) -> bool:
        """
        Verify a plain password against a stored hash.

        A malformed stored hash counts as a mismatch and is logged; it never raises.
        """
        try:
            return bcrypt.checkpw(self._encode(plain_password), hashed.encode("utf-8"))
        except (ValueError, TypeError, AttributeError):
            logger.warning("Stored password hash is malformed; treating as mismatch")
            return False


class TokenError(Exception):
    """Base class for token verification failures."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class TokenInvalid(TokenError):
    """Bad signature, wrong secret, tampered payload or missing claims."""


class TokenExpired(TokenError):
    """Correctly signed token whose expiry has passed."""


@dataclass(frozen=True)
class TokenIdentity:
    """Claims carried by a verified access token."""

    account_id: int
    username: str
    issued_at: datetime
    expires_at: datetime


class TokenService:
    """
    Issue and verify stateless HMAC-signed JWT access tokens.

    Nothing is stored server side: a token stays valid until its own expiry even if
    the account is renamed or moderated afterwards.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        ttl: timedelta = timedelta(hours=1),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not secret:
            raise ValueError("Token secret must be non-empty")
        self._secret = secret
        self.algorithm = algorithm
        self.ttl = ttl
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(
            secret=settings.JWT_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
            ttl=timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
        )

    def issue(self, account_id: int, username: str) -> str:
        """Create a signed token for the account, expiring ttl after issuance."""
        now = self._clock()
        payload: dict[str, Any] = {
            "sub": str(account_id),
            "username": username,
            "iat": int(now.timestamp()),
            "exp": int((now + self.ttl).timestamp()),
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenIdentity:
        """
        Check signature first, then expiry against this service's clock.

        Raises TokenInvalid for anything not signed by our secret (or malformed),
        TokenExpired for a genuine token past its exp.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "require": list(REQUIRED_TOKEN_CLAIMS),
                },
            )
        except jwt.PyJWTError as e:
            raise TokenInvalid("Invalid token") from e

        try:
            account_id = int(payload["sub"])
            username = payload["username"]
            issued_at = datetime.fromtimestamp(int(payload["iat"]), UTC)
            expires_at = datetime.fromtimestamp(int(payload["exp"]), UTC)
        except (TypeError, ValueError, OverflowError, OSError) as e:
            raise TokenInvalid("Invalid token payload") from e
        if not isinstance(username, str) or not username:
            raise TokenInvalid("Invalid token payload")

        if self._clock() >= expires_at:
            raise TokenExpired("Token has expired")
        return TokenIdentity(
            account_id=account_id,
            username=username,
            issued_at=issued_at,
            expires_at=expires_at,
        )
