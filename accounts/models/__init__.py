"""SQLAlchemy ORM models."""

from accounts.models.base import Base
from accounts.models.account import Account

__all__ = ["Account", "Base"]
