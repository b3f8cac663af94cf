"""
journal_backend/routers/admin.py

Administrator-only endpoints. Every route depends on require_admin, so a
caller without the ADMIN role gets 403 before any handler runs.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from journal_backend.database import get_db
from journal_backend.schemas.journal_entry import JournalEntryRead
from journal_backend.schemas.response import Response, ok
from journal_backend.schemas.user import UserCreate, UserRead
from journal_backend.services import journal_entry as entry_service
from journal_backend.services.user import get_all_users, register_admin
from journal_backend.utils.auth import require_admin

router = APIRouter(tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/users", response_model=Response)
def list_users(db: Session = Depends(get_db)):
    users = get_all_users(db)
    return ok("Users fetched successfully", [UserRead.model_validate(u) for u in users])


@router.post("/users", response_model=Response, status_code=201)
def create_admin(user: UserCreate, db: Session = Depends(get_db)):
    """Create another administrator (roles USER + ADMIN)."""
    admin = register_admin(user.username, user.password, db)
    return ok("Admin created successfully", UserRead.model_validate(admin), status=201)


@router.get("/entries/{entry_id}", response_model=Response)
def get_any_entry(entry_id: int, db: Session = Depends(get_db)):
    """
    Fetch any entry by id, regardless of owner. This is the only path that
    bypasses the ownership check.
    """
    entry = entry_service.get_entry_by_id(entry_id, db)
    return ok("Journal entry fetched successfully", JournalEntryRead.model_validate(entry))
