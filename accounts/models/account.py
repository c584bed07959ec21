"""ORM model for community site accounts."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, false, func

from accounts.models.base import Base


class Account(Base):
    """
    Registered account; the only persisted identity record.

    username is unique and compared exactly (case-sensitive) by the store.
    banned and disabled are independent moderation flags; either one blocks login.
    """

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    avatar_ref = Column(String(1024), nullable=True)
    banned = Column(Boolean, nullable=False, default=False, server_default=false())
    disabled = Column(Boolean, nullable=False, default=False, server_default=false())
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Account id={self.id} username={self.username!r}>"
