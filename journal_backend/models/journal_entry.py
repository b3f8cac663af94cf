"""
journal_backend/models/journal_entry.py

A single journal entry. Ownership lives on the user side (User.journal_entries);
the entry itself has no owner column, so a row can be fetched by id on its own
but the API only hands it out to the user whose reference set contains it.
"""

from __future__ import annotations
import datetime
from sqlalchemy import Integer, Text
from sqlalchemy.orm import Mapped, mapped_column
from journal_backend.database import Base, UTCDateTime, utcnow


class JournalEntry(Base):
    __tablename__ = "journal_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    # Both may be blank
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")

    created_at: Mapped[datetime.datetime] = mapped_column(
        UTCDateTime, nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    def __repr__(self) -> str:
        return f"<JournalEntry(id={self.id}, title={self.title!r})>"
