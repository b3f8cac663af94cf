"""
journal_backend/schemas/journal_entry.py

Pydantic schemas for journal entries. Create and update share the same shape:
both fields optional. On update an absent or blank field leaves the stored
value unchanged (see services/journal_entry.update_entry).
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class JournalEntryBase(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None


class JournalEntryCreate(JournalEntryBase):
    pass


class JournalEntryUpdate(JournalEntryBase):
    pass


class JournalEntryRead(BaseModel):
    id: int
    title: str
    content: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
