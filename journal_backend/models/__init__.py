# journal_backend/models/__init__.py

"""
Centralizes model imports so that Base.metadata knows every table
as soon as the models package is imported.
"""

from journal_backend.database import Base

# Models from user.py (plus the ownership association table)
from .user import User, user_journal_entries

# Models from journal_entry.py
from .journal_entry import JournalEntry
