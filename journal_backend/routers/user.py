# FILE: journal_backend/routers/user.py

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session

# Pydantic schemas for user creation, reading, and updating
from journal_backend.schemas.user import UserCreate, UserRead, UserUpdate
from journal_backend.schemas.response import Response, ok

# Service functions that interact with the database
from journal_backend.services.user import (
    register_user,
    get_user_by_username,
    update_profile,
    delete_by_username,
)
from journal_backend.services.notifier import Notifier, get_notifier

from journal_backend.database import get_db
from journal_backend.utils.auth import (
    Principal,
    SESSION_USER_ID_KEY,
    SESSION_USERNAME_KEY,
    get_current_principal,
)

# Create a FastAPI router instance with the "users" tag for API documentation
router = APIRouter(tags=["users"])


@router.post("", response_model=Response, status_code=201)
def create_user(
    user: UserCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Register a new user: POST /api/users

    1. Rejects a taken username (400).
    2. Hashes the password and stores the user with the USER role.
    3. If an email was given, queues a welcome mail. Mail failures never
       affect the response.
    """
    new_user = register_user(user.username, user.password, db, email=user.email)

    if new_user.email:
        background_tasks.add_task(
            notifier.send,
            new_user.email,
            "Welcome to your journal",
            f"Hello {new_user.username}, your account is ready.",
        )

    return ok("User created successfully", UserRead.model_validate(new_user), status=201)


@router.get("/me", response_model=Response)
def read_me(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    user = get_user_by_username(principal.username, db)
    return ok("User fetched successfully", UserRead.model_validate(user))


@router.put("/me", response_model=Response)
def update_me(
    user_data: UserUpdate,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """
    Update the caller's username, password and/or email: PUT /api/users/me

    - 404 if the caller's record no longer exists.
    - Bearer tokens issued before a rename stop resolving (401); the caller
      must log in again. The session is rewritten so cookie-based callers
      keep working.
    """
    updated = update_profile(principal.username, user_data, db)

    if request.session.get(SESSION_USER_ID_KEY) == updated.id:
        request.session[SESSION_USERNAME_KEY] = updated.username

    return ok("User updated successfully", UserRead.model_validate(updated))


@router.delete("/me", response_model=Response)
def delete_me(
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """
    Delete the caller's account together with every entry it owns,
    then clear the session.
    """
    deleted = delete_by_username(principal.username, db)
    request.session.clear()
    return ok("User deleted successfully", deleted)
