"""
journal_backend/routers/journal_entry.py

Router for the caller's own journal entries. Every route requires a principal
and hands it to the service layer explicitly; the service decides what the
caller may see. Errors raised by the service (UserNotFound, EntryNotFound)
are turned into envelopes by the handlers in main.py.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from journal_backend.database import get_db
from journal_backend.schemas.journal_entry import (
    JournalEntryCreate,
    JournalEntryRead,
    JournalEntryUpdate,
)
from journal_backend.schemas.response import Response, ok
from journal_backend.services import journal_entry as entry_service
from journal_backend.utils.auth import Principal, get_current_principal

router = APIRouter(tags=["entries"])


@router.post("", response_model=Response, status_code=201)
def create_entry(
    entry: JournalEntryCreate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """
    Create an entry owned by the caller: POST /api/entries
    404 if the caller's user record no longer exists.
    """
    created = entry_service.create_entry(entry, principal, db)
    return ok("Journal entry created successfully", JournalEntryRead.model_validate(created), status=201)


@router.get("", response_model=Response)
def list_entries(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """List every entry the caller owns (possibly none)."""
    entries = entry_service.list_entries(principal, db)
    return ok(
        "Journal entries fetched successfully",
        [JournalEntryRead.model_validate(e) for e in entries],
    )


@router.get("/{entry_id}", response_model=Response)
def get_entry(
    entry_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    entry = entry_service.get_entry(entry_id, principal, db)
    return ok("Journal entry fetched successfully", JournalEntryRead.model_validate(entry))


@router.put("/{entry_id}", response_model=Response)
def update_entry(
    entry_id: int,
    entry: JournalEntryUpdate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """
    Merge-update an owned entry: blank or missing fields keep their stored value.
    """
    updated = entry_service.update_entry(entry_id, entry, principal, db)
    return ok("Journal entry updated successfully", JournalEntryRead.model_validate(updated))


@router.delete("/{entry_id}", response_model=Response)
def delete_entry(
    entry_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """
    Delete an owned entry and return it. Repeating the call answers 404.
    """
    deleted = entry_service.delete_entry(entry_id, principal, db)
    return ok("Journal entry deleted successfully", deleted)
