"""Registration, login, self-service profile updates and moderation.

All input validation happens before any state-mutating call. Credential and
eligibility failures on login collapse into one generic AuthError. bcrypt work is
run in the threadpool so it never blocks the event loop.
"""

import logging

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import SQLAlchemyError

from accounts.core.security import (
    PASSWORD_MAX_LEN,
    USERNAME_MAX_LEN,
    PasswordHasher,
    TokenIdentity,
    TokenService,
)
from accounts.models import Account
from accounts.schemas.admin import AdminAccountView
from accounts.schemas.auth import AccountView, AuthResponse, ProfileUpdateResponse
from accounts.services.errors import (
    AuthError,
    ConflictError,
    InputValidationError,
    NotFoundError,
)
from accounts.services.identity_store import (
    AccountChanges,
    AccountNotFound,
    DuplicateUsername,
    IdentityStore,
)
from accounts.services.images import ImagePersister, InvalidImage
from accounts.services.moderation import ModerationFlag, is_eligible_to_authenticate

logger = logging.getLogger(__name__)

# Verified against when the username is unknown, so both paths cost one bcrypt check.
_DUMMY_PASSWORD = "timing-equalizer-not-a-password"


def account_view(account: Account, default_avatar: str | None = None) -> AccountView:
    return AccountView(
        id=account.id,
        username=account.username,
        avatar=account.avatar_ref or default_avatar,
    )


def _validate_username(username: str) -> None:
    if not username or not username.strip():
        raise InputValidationError("Username is required")
    if len(username) > USERNAME_MAX_LEN:
        raise InputValidationError("Invalid username length.")


def _validate_password(password: str, field: str = "Password") -> None:
    if not password:
        raise InputValidationError(f"{field} is required")
    if len(password) > PASSWORD_MAX_LEN:
        raise InputValidationError(f"Invalid {field.lower()} length.")


class AuthService:
    """Owns the account business rules; composed from injected collaborators."""

    def __init__(
        self,
        store: IdentityStore,
        hasher: PasswordHasher,
        tokens: TokenService,
        images: ImagePersister,
        default_avatar_url: str | None = None,
    ) -> None:
        self.store = store
        self.hasher = hasher
        self.tokens = tokens
        self.images = images
        self.default_avatar_url = default_avatar_url
        # Built once at startup so no login request pays for an extra hash.
        self._dummy_hash = hasher.hash(_DUMMY_PASSWORD)

    async def _hash(self, password: str) -> str:
        return await run_in_threadpool(self.hasher.hash, password)

    async def _verify(self, password: str, hashed: str) -> bool:
        return await run_in_threadpool(self.hasher.verify, password, hashed)

    async def _persist_avatar(self, payload: str) -> str:
        try:
            return await self.images.persist(payload)
        except InvalidImage as e:
            raise InputValidationError(f"Invalid image: {e.message}") from e

    async def register(
        self, username: str, password: str, avatar: str | None = None
    ) -> AuthResponse:
        """Create an account and return it with a token. Duplicate usernames -> ConflictError."""
        _validate_username(username)
        _validate_password(password)

        avatar_ref = await self._persist_avatar(avatar) if avatar else None
        password_hash = await self._hash(password)
        try:
            account = await self.store.create(username, password_hash, avatar_ref)
        except DuplicateUsername as e:
            if avatar_ref:
                await self.images.discard(avatar_ref)
            raise ConflictError() from e
        except SQLAlchemyError:
            if avatar_ref:
                await self.images.discard(avatar_ref)
            raise

        logger.info("Account registered", extra={"account_id": account.id})
        token = self.tokens.issue(account.id, account.username)
        return AuthResponse(account=account_view(account), token=token)

    async def login(self, username: str, password: str) -> AuthResponse:
        """
        Authenticate by username and password.

        Unknown account, banned/disabled account and wrong password all raise the
        same AuthError; the actual reason is only logged.
        """
        if not username or not password:
            raise InputValidationError("Username and password are required")

        # Every rejection below costs exactly one bcrypt check.
        account = await self.store.find_by_username(username)
        if account is None:
            await self._verify(password, self._dummy_hash)
            logger.info("Login rejected", extra={"reason": "unknown_account"})
            raise AuthError()
        if not is_eligible_to_authenticate(account):
            await self._verify(password, account.password_hash)
            logger.info(
                "Login rejected",
                extra={"reason": "ineligible", "account_id": account.id},
            )
            raise AuthError()
        if not await self._verify(password, account.password_hash):
            logger.info(
                "Login rejected",
                extra={"reason": "bad_password", "account_id": account.id},
            )
            raise AuthError()

        token = self.tokens.issue(account.id, account.username)
        return AuthResponse(
            account=account_view(account, self.default_avatar_url),
            token=token,
        )

    async def update_profile(
        self,
        identity: TokenIdentity,
        new_username: str | None = None,
        current_password: str | None = None,
        new_password: str | None = None,
        new_avatar: str | None = None,
    ) -> ProfileUpdateResponse:
        """
        Update the token holder's own account.

        Only the fields supplied are written. Changing username or password needs
        the current password. A new token is issued only when the username changes;
        tokens issued before stay valid until they expire.
        """
        # Empty strings mean "not supplied".
        new_username = new_username or None
        new_password = new_password or None
        new_avatar = new_avatar or None

        if new_username is None and new_password is None and new_avatar is None:
            raise InputValidationError("No profile changes supplied")
        if new_username is not None:
            _validate_username(new_username)
        if new_password is not None:
            _validate_password(new_password, "New password")

        account = await self.store.find_by_id(identity.account_id)
        if account is None:
            raise NotFoundError("Account not found")

        if new_username is not None or new_password is not None:
            if not current_password:
                raise InputValidationError("Current password is required")
            if not await self._verify(current_password, account.password_hash):
                raise AuthError("Current password is incorrect")

        avatar_ref = await self._persist_avatar(new_avatar) if new_avatar else None
        password_hash = await self._hash(new_password) if new_password else None
        changes = AccountChanges(
            username=new_username,
            password_hash=password_hash,
            avatar_ref=avatar_ref,
        )
        try:
            updated = await self.store.update_fields(account.id, changes)
        except DuplicateUsername as e:
            if avatar_ref:
                await self.images.discard(avatar_ref)
            raise ConflictError() from e
        except AccountNotFound as e:
            if avatar_ref:
                await self.images.discard(avatar_ref)
            raise NotFoundError("Account not found") from e
        except SQLAlchemyError:
            if avatar_ref:
                await self.images.discard(avatar_ref)
            raise

        token = None
        if new_username is not None:
            token = self.tokens.issue(updated.id, updated.username)
        logger.info(
            "Profile updated",
            extra={
                "account_id": updated.id,
                "username_changed": new_username is not None,
                "password_changed": new_password is not None,
                "avatar_changed": avatar_ref is not None,
            },
        )
        return ProfileUpdateResponse(account=account_view(updated), token=token)

    async def ensure_eligible(self, identity: TokenIdentity) -> Account:
        """Re-read the token's account and refuse it if gone, banned or disabled."""
        account = await self.store.find_by_id(identity.account_id)
        if account is None or not is_eligible_to_authenticate(account):
            raise AuthError("Account is not permitted")
        return account

    async def set_moderation_flag(
        self, username: str, flag: ModerationFlag, value: bool
    ) -> AccountView:
        """Set banned/disabled on an account. Takes effect at its next login."""
        try:
            account = await self.store.set_moderation_flag(username, flag, value)
        except AccountNotFound as e:
            raise NotFoundError("Account not found") from e
        logger.info(
            "Moderation flag changed",
            extra={"account_id": account.id, "flag": flag.value, "value": value},
        )
        return account_view(account)

    async def list_accounts(self) -> list[AdminAccountView]:
        accounts = await self.store.list_accounts()
        return [
            AdminAccountView(
                id=a.id,
                username=a.username,
                avatar=a.avatar_ref,
                banned=a.banned,
                disabled=a.disabled,
                created_at=a.created_at,
            )
            for a in accounts
        ]
