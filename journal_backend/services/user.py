"""
journal_backend/services/user.py

Handles user-level operations: registration, lookup, profile update,
deletion and credential checks. Passwords are hashed here (via the model)
and never leave this layer in clear text.

Failures are raised as journal_backend.errors exceptions; the HTTP layer
turns them into envelopes.
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from journal_backend.constants import ADMIN_ROLES, DEFAULT_ROLES
from journal_backend.errors import (
    DuplicateUsername,
    InvalidCredentials,
    UserNotFound,
    ValidationError,
)
from journal_backend.models.user import User
from journal_backend.schemas.user import UserRead, UserUpdate

logger = logging.getLogger(__name__)


def get_all_users(db: Session) -> list[User]:
    """
    Fetch and return all User records, ordered by id. Admin use only.
    """
    return db.query(User).order_by(User.id).all()


def find_by_username(username: str, db: Session) -> User | None:
    """
    Return a User by username, or None if not found.
    """
    return db.query(User).filter(User.username == username).first()


def get_user_by_username(username: str, db: Session) -> User:
    """Like find_by_username but raises UserNotFound."""
    user = find_by_username(username, db)
    if not user:
        raise UserNotFound(f"User '{username}' not found")
    return user


def _apply_password(user: User, raw_password: str) -> None:
    try:
        user.set_password(raw_password)
    except ValueError as e:
        raise ValidationError(str(e))


def _commit(db: Session) -> None:
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


def _commit_user(user: User, db: Session) -> User:
    """
    Commit pending changes for 'user'. The unique index on username is the
    final guard against a duplicate that slipped past the up-front check.
    """
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateUsername(f"Username '{user.username}' already registered")
    db.refresh(user)
    return user


def _register(username: str, raw_password: str, roles, db: Session, email: str | None = None) -> User:
    if find_by_username(username, db):
        raise DuplicateUsername(f"Username '{username}' already registered")

    new_user = User(username=username, email=email)
    new_user.roles = roles
    _apply_password(new_user, raw_password)
    db.add(new_user)
    return _commit_user(new_user, db)


def register_user(username: str, raw_password: str, db: Session, email: str | None = None) -> User:
    """
    Create a regular user with the default role set {USER}.
    Raises DuplicateUsername if the name is taken.
    """
    user = _register(username, raw_password, DEFAULT_ROLES, db, email=email)
    logger.info(f"Registered user '{user.username}' (id={user.id})")
    return user


def register_admin(username: str, raw_password: str, db: Session) -> User:
    """
    Same as register_user, but the account holds {USER, ADMIN}.
    """
    user = _register(username, raw_password, ADMIN_ROLES, db)
    logger.info(f"Registered admin '{user.username}' (id={user.id})")
    return user


def update_profile(username: str, patch: UserUpdate, db: Session) -> User:
    """
    Update the named user's username, password and/or email.
    Fields absent from the patch are left alone; a present password is re-hashed.
    """
    db_user = get_user_by_username(username, db)

    if patch.username is not None:
        new_username = patch.username.strip()
        if not new_username:
            raise ValidationError("username must not be blank")
        if new_username != db_user.username and find_by_username(new_username, db):
            raise DuplicateUsername(f"Username '{new_username}' already registered")
        db_user.username = new_username
    if patch.password is not None:
        if not patch.password:
            raise ValidationError("password must not be empty")
        _apply_password(db_user, patch.password)
    if patch.email is not None:
        db_user.email = patch.email or None

    user = _commit_user(db_user, db)
    logger.info(f"Updated profile of '{username}' (now '{user.username}')")
    return user


def delete_by_username(username: str, db: Session) -> UserRead:
    """
    Delete the named user. The relationship cascade removes the entries the
    user owns together with the reference rows, in the same transaction.
    Returns a snapshot of the user taken before the delete.
    """
    db_user = get_user_by_username(username, db)
    snapshot = UserRead.model_validate(db_user)
    entry_count = len(db_user.journal_entries)
    db.delete(db_user)
    _commit(db)
    logger.info(f"Deleted user '{username}' and {entry_count} owned entries")
    return snapshot


def authenticate(username: str, raw_password: str, db: Session) -> User:
    """
    Return the user if the password matches the stored hash.
    The same InvalidCredentials is raised for unknown users and wrong passwords.
    """
    user = find_by_username(username, db)
    if not user or not user.verify_password(raw_password):
        logger.debug(f"Failed login attempt for '{username}'")
        raise InvalidCredentials()
    return user
