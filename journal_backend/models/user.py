"""
journal_backend/models/user.py

Represents a user of the journal API. Each user owns a set of references to
JournalEntry rows, stored in the user_journal_entries association table.
Entries are only reachable through the API via that reference set.
"""

from __future__ import annotations
import os
from typing import List, Optional, TYPE_CHECKING
import bcrypt
from sqlalchemy import Column, ForeignKey, Integer, String, Table
from sqlalchemy.orm import relationship, Mapped, mapped_column
from journal_backend.database import Base
from journal_backend.constants import DEFAULT_ROLES, Role, parse_roles, serialize_roles

if TYPE_CHECKING:
    from journal_backend.models.journal_entry import JournalEntry

# bcrypt cost factor; tests lower it to keep hashing fast
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

# bcrypt silently ignores anything past 72 bytes, so we refuse it instead
BCRYPT_MAX_BYTES = 72

# Each row is one reference from a user to an entry it owns
user_journal_entries = Table(
    "user_journal_entries",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("entry_id", Integer, ForeignKey("journal_entries.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    """
    The main user table. Each user has:
      - An ID (PK)
      - A unique username
      - A hashed password
      - A role set (USER, optionally ADMIN)
      - An optional email used for notifications
      - The set of journal entries it owns
    """

    __tablename__ = 'users'
    # Ids are never reused; credentials carry the id of the account they were issued to
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    # Unique username for login; the unique index is the final duplicate guard
    username: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Comma-joined Role values, e.g. "ADMIN,USER"
    roles_raw: Mapped[str] = mapped_column(
        "roles", String(255), nullable=False, default=serialize_roles(DEFAULT_ROLES)
    )

    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Deleting a user deletes the entries it owns as well
    journal_entries: Mapped[List[JournalEntry]] = relationship(
        "JournalEntry",
        secondary=user_journal_entries,
        order_by="JournalEntry.id",
        cascade="all, delete",
        doc="Entries owned by this user."
    )

    @property
    def roles(self) -> frozenset:
        return parse_roles(self.roles_raw)

    @roles.setter
    def roles(self, value) -> None:
        roles = frozenset(Role(r) for r in value)
        if not roles:
            raise ValueError("A user must hold at least one role")
        self.roles_raw = serialize_roles(roles)

    def owns_entry(self, entry_id: int) -> bool:
        return any(entry.id == entry_id for entry in self.journal_entries)

    def set_password(self, password: str) -> None:
        """
        Hash and store the user's password with bcrypt.
        Raises ValueError when the UTF-8 encoding exceeds 72 bytes.
        """
        encoded = password.encode("utf-8")
        if len(encoded) > BCRYPT_MAX_BYTES:
            raise ValueError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")
        self.password_hash = bcrypt.hashpw(
            encoded, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
        ).decode("utf-8")

    def verify_password(self, password: str) -> bool:
        """
        Verify a plain-text password against the stored hash.
        """
        encoded = password.encode("utf-8")
        if not self.password_hash or len(encoded) > BCRYPT_MAX_BYTES:
            return False
        return bcrypt.checkpw(encoded, self.password_hash.encode("utf-8"))

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username}, roles={self.roles_raw})>"
