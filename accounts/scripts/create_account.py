"""
Create an account without going through the HTTP API. Run from project root:
  python -m accounts.scripts.create_account USERNAME PASSWORD
"""
import argparse
import asyncio
import logging
import sys

from accounts.core.config import get_settings
from accounts.core.database import create_engine_from_settings, create_session_factory
from accounts.core.security import PASSWORD_MAX_LEN, USERNAME_MAX_LEN, PasswordHasher
from accounts.services.identity_store import DuplicateUsername, IdentityStore

logger = logging.getLogger(__name__)


async def create_account(username: str, password: str) -> int:
    settings = get_settings()
    engine = create_engine_from_settings(settings)
    store = IdentityStore(create_session_factory(engine))
    hasher = PasswordHasher(rounds=settings.BCRYPT_ROUNDS)
    try:
        account = await store.create(username, hasher.hash(password))
    except DuplicateUsername:
        print(f"Account '{username}' already exists.", file=sys.stderr)
        return 1
    finally:
        await engine.dispose()
    print(f"Created account '{account.username}' (id {account.id}).")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a community site account.")
    parser.add_argument("username", help=f"Username (1-{USERNAME_MAX_LEN} chars, case-sensitive)")
    parser.add_argument("password", help=f"Password (1-{PASSWORD_MAX_LEN} chars)")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )
    if not args.username.strip() or len(args.username) > USERNAME_MAX_LEN:
        print("Invalid username length.", file=sys.stderr)
        return 1
    if not args.password or len(args.password) > PASSWORD_MAX_LEN:
        print(f"Password must be 1-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1
    return asyncio.run(create_account(args.username, args.password))


if __name__ == "__main__":
    sys.exit(main())
