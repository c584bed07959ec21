"""Durable account table: creation, lookup, partial updates and moderation flags.

Username uniqueness is enforced by the unique index on accounts.username. Writes
never check for an existing row first; a constraint violation at write time is
translated to DuplicateUsername, so concurrent registrations cannot both succeed.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from accounts.models import Account
from accounts.services.moderation import ModerationFlag

logger = logging.getLogger(__name__)


class DuplicateUsername(Exception):
    def __init__(self, username: str) -> None:
        self.username = username
        super().__init__(f"Username already exists: {username!r}")


class AccountNotFound(Exception):
    def __init__(self, key: int | str) -> None:
        self.key = key
        super().__init__(f"Account not found: {key!r}")


@dataclass(frozen=True)
class AccountChanges:
    """Optional field set for a partial update. None means "leave untouched"."""

    username: str | None = None
    password_hash: str | None = None
    avatar_ref: str | None = None

    def as_values(self) -> dict[str, Any]:
        """Return only the supplied fields, keyed by their fixed column names."""
        values: dict[str, Any] = {}
        if self.username is not None:
            values["username"] = self.username
        if self.password_hash is not None:
            values["password_hash"] = self.password_hash
        if self.avatar_ref is not None:
            values["avatar_ref"] = self.avatar_ref
        return values

    def is_empty(self) -> bool:
        return not self.as_values()


# Column written for each moderation flag.
_FLAG_COLUMNS = {
    ModerationFlag.BANNED: "banned",
    ModerationFlag.DISABLED: "disabled",
}


class IdentityStore:
    """
    Account persistence over an async session factory.

    Every method opens its own short session; rows returned are detached but fully
    loaded. SQLAlchemy errors other than uniqueness violations propagate unchanged.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create(
        self,
        username: str,
        password_hash: str,
        avatar_ref: str | None = None,
    ) -> Account:
        """Insert a new account in a single constrained write."""
        account = Account(
            username=username,
            password_hash=password_hash,
            avatar_ref=avatar_ref,
            banned=False,
            disabled=False,
            created_at=datetime.now(UTC),
        )
        async with self._session_factory() as session:
            session.add(account)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                # username carries the only unique constraint on the table
                raise DuplicateUsername(username) from e
        return account

    async def find_by_username(self, username: str) -> Account | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Account).where(Account.username == username)
            )
            return result.scalar_one_or_none()

    async def find_by_id(self, account_id: int) -> Account | None:
        async with self._session_factory() as session:
            return await session.get(Account, account_id)

    async def list_accounts(self) -> list[Account]:
        async with self._session_factory() as session:
            result = await session.execute(select(Account).order_by(Account.id))
            return list(result.scalars().all())

    async def update_fields(self, account_id: int, changes: AccountChanges) -> Account:
        """
        Apply only the supplied fields in one UPDATE.

        A username collision raises DuplicateUsername and leaves the row untouched
        (the whole statement is rolled back).
        """
        async with self._session_factory() as session:
            account = await session.get(Account, account_id)
            if account is None:
                raise AccountNotFound(account_id)
            if changes.is_empty():
                return account
            values = changes.as_values()
            for column, value in values.items():
                setattr(account, column, value)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise DuplicateUsername(values.get("username", account_id)) from e
            logger.info(
                "Account fields updated",
                extra={"account_id": account_id, "fields": sorted(values)},
            )
            return account

    async def set_moderation_flag(
        self, username: str, flag: ModerationFlag, value: bool
    ) -> Account:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Account).where(Account.username == username)
            )
            account = result.scalar_one_or_none()
            if account is None:
                raise AccountNotFound(username)
            setattr(account, _FLAG_COLUMNS[flag], value)
            await session.commit()
            return account
