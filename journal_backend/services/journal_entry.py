"""
journal_backend/services/journal_entry.py

Ownership-scoped CRUD for journal entries.

Every public function takes the authenticated Principal explicitly and works
only on entries found in that user's reference set (User.journal_entries).
An entry that exists but belongs to someone else is reported exactly like a
missing one, so ids never leak across users.

Atomicity:
 - Each mutating function commits once. The entry row and the reference row
   are written (or removed) in the same transaction; any failure rolls both back.

Update semantics (merge-skip):
 - For 'title' and 'content', a present, non-blank value replaces the stored
   one. An absent field and a blank string are treated the same: the stored
   value is kept.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from journal_backend.errors import EntryNotFound
from journal_backend.models.journal_entry import JournalEntry
from journal_backend.models.user import User
from journal_backend.schemas.journal_entry import (
    JournalEntryCreate,
    JournalEntryRead,
    JournalEntryUpdate,
)
from journal_backend.services.user import get_user_by_username
from journal_backend.utils.auth import Principal

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------------------
def _owner_of(principal: Principal, db: Session) -> User:
    """Resolve the principal to its user row (UserNotFound if it has none)."""
    return get_user_by_username(principal.username, db)


def _owned_entry(user: User, entry_id: int) -> JournalEntry:
    for entry in user.journal_entries:
        if entry.id == entry_id:
            return entry
    raise EntryNotFound(f"Entry {entry_id} not found")


def _merge_value(incoming: Optional[str], current: str) -> str:
    if incoming is not None and incoming.strip() != "":
        return incoming
    return current


def _commit(db: Session) -> None:
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


# ------------------------------------------------------------------------------
# Public Functions
# ------------------------------------------------------------------------------
def create_entry(entry_data: JournalEntryCreate, principal: Principal, db: Session) -> JournalEntry:
    """
    Persist a new entry and append it to the principal's reference set,
    in one transaction. Raises UserNotFound if the principal has no user row.
    """
    user = _owner_of(principal, db)

    entry = JournalEntry(
        title=entry_data.title or "",
        content=entry_data.content or "",
    )
    db.add(entry)
    user.journal_entries.append(entry)
    _commit(db)
    db.refresh(entry)

    logger.info(f"User '{user.username}' created entry {entry.id}")
    return entry


def list_entries(principal: Principal, db: Session) -> list[JournalEntry]:
    """
    All entries owned by the principal, ordered by id. Empty list if none.
    """
    user = _owner_of(principal, db)
    return list(user.journal_entries)


def get_entry(entry_id: int, principal: Principal, db: Session) -> JournalEntry:
    """
    The entry with this id, provided the principal owns it.
    Raises EntryNotFound otherwise, whether or not the id exists elsewhere.
    """
    user = _owner_of(principal, db)
    return _owned_entry(user, entry_id)


def get_entry_by_id(entry_id: int, db: Session) -> JournalEntry:
    """
    Privileged fetch that ignores ownership. Only the admin router calls this.
    """
    entry = db.get(JournalEntry, entry_id)
    if entry is None:
        raise EntryNotFound(f"Entry {entry_id} not found")
    return entry


def update_entry(
    entry_id: int,
    entry_data: JournalEntryUpdate,
    principal: Principal,
    db: Session,
) -> JournalEntry:
    """
    Merge 'entry_data' into an owned entry (see merge-skip semantics above).
    Raises EntryNotFound if the entry is missing or owned by someone else.
    """
    user = _owner_of(principal, db)
    entry = _owned_entry(user, entry_id)

    entry.title = _merge_value(entry_data.title, entry.title)
    entry.content = _merge_value(entry_data.content, entry.content)

    _commit(db)
    db.refresh(entry)
    logger.info(f"User '{user.username}' updated entry {entry_id}")
    return entry


def delete_entry(entry_id: int, principal: Principal, db: Session) -> JournalEntryRead:
    """
    Delete an owned entry and drop it from the owner's reference set.

    - Missing id => EntryNotFound, so repeating a delete is harmless.
    - Id owned by another user => EntryNotFound as well; nothing is touched.
    - References are matched by id; any reference not found is simply skipped.

    Returns a snapshot of the entry as it was before deletion.
    """
    user = _owner_of(principal, db)

    entry = db.get(JournalEntry, entry_id)
    if entry is None:
        logger.debug(f"Delete of missing entry {entry_id} by '{user.username}'")
        raise EntryNotFound(f"Entry {entry_id} not found")
    if not user.owns_entry(entry_id):
        logger.warning(f"User '{user.username}' tried to delete entry {entry_id} it does not own")
        raise EntryNotFound(f"Entry {entry_id} not found")

    snapshot = JournalEntryRead.model_validate(entry)

    for linked in [e for e in user.journal_entries if e.id == entry_id]:
        user.journal_entries.remove(linked)
    db.delete(entry)
    _commit(db)

    logger.info(f"User '{user.username}' deleted entry {entry_id}")
    return snapshot
