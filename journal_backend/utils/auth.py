"""
journal_backend/utils/auth.py

Credential verification for protected routes.

A request may authenticate in one of three ways, tried in this order:
  1) Authorization: Bearer <JWT>   (issued by POST /api/login)
  2) Authorization: Basic <b64>    (checked against the stored bcrypt hash)
  3) The session cookie set by POST /api/login

Bearer tokens and sessions carry the user id next to the username. Both are
checked against the live users row on every request, so a credential issued to
a deleted or renamed account never resolves to whoever holds that name now.
Roles always come from the row.

Whatever succeeds yields a Principal that routers pass explicitly to the
service layer. Nothing downstream reads identity from ambient state.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional
import logging
import os

from fastapi import Depends, Request
from fastapi.security import (
    HTTPAuthorizationCredentials,
    HTTPBasic,
    HTTPBasicCredentials,
    HTTPBearer,
)
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from journal_backend.constants import Role
from journal_backend.database import get_db
from journal_backend.errors import Forbidden, InvalidCredentials
from journal_backend.models.user import User
from journal_backend.services.user import authenticate

logger = logging.getLogger(__name__)

# Load environment variables
SECRET_KEY = os.getenv("SECRET_KEY", "default_secret_key")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))

# Session keys written by the login endpoint
SESSION_USER_ID_KEY = "user_id"
SESSION_USERNAME_KEY = "username"

bearer_scheme = HTTPBearer(auto_error=False)
basic_scheme = HTTPBasic(auto_error=False)


@dataclass(frozen=True)
class Principal:
    """The authenticated identity attached to a request."""
    username: str
    roles: frozenset = field(default_factory=frozenset)
    user_id: Optional[int] = None

    @property
    def is_admin(self) -> bool:
        return Role.ADMIN in self.roles


# --- JWT Helper Functions ---

def create_access_token(user_id: int, username: str, expires_minutes: Optional[int] = None) -> str:
    """
    Generate a signed JWT carrying the user id ('uid'), the username ('sub') and an expiry.
    Roles are not part of the token; they are read from the users row on each request.

    Args:
        user_id (int): Immutable id of the user the token is issued to.
        username (str): Subject of the token, as it was at login time.
        expires_minutes (int, optional): Lifetime override; defaults to ACCESS_TOKEN_EXPIRE_MINUTES.

    Returns:
        str: Encoded JWT token.
    """
    minutes = ACCESS_TOKEN_EXPIRE_MINUTES if expires_minutes is None else expires_minutes
    expire = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    to_encode = {"sub": username, "uid": user_id, "exp": expire}
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def verify_access_token(token: str) -> Principal:
    """
    Verify and decode a JWT access token. The returned Principal holds the
    claimed identity only (no roles); get_current_principal checks it against
    the users table.

    Raises:
        InvalidCredentials: If the token is malformed, tampered with or expired.
    """
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise InvalidCredentials("Invalid token")

    username = payload.get("sub")
    user_id = payload.get("uid")
    if not username or not isinstance(user_id, int):
        raise InvalidCredentials("Invalid token")
    return Principal(username=username, user_id=user_id)


def _live_principal(user_id: Optional[int], username: Optional[str], db: Session) -> Principal:
    """
    Principal for the user row 'user_id', provided it still carries 'username'.
    A deleted account, or one renamed since the credential was issued, is rejected.
    """
    user = db.get(User, user_id) if user_id is not None else None
    if user is None or user.username != username:
        logger.info(f"Rejected stale credential for '{username}' (id={user_id})")
        raise InvalidCredentials("Credential no longer matches an account")
    return Principal(username=user.username, roles=user.roles, user_id=user.id)


# --- FastAPI dependencies ---

def get_current_principal(
    request: Request,
    bearer: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    basic: Optional[HTTPBasicCredentials] = Depends(basic_scheme),
    db: Session = Depends(get_db),
) -> Principal:
    """
    Resolve the caller's Principal or raise InvalidCredentials (401).
    """
    if bearer is not None:
        claimed = verify_access_token(bearer.credentials)
        return _live_principal(claimed.user_id, claimed.username, db)

    if basic is not None:
        user = authenticate(basic.username, basic.password, db)
        return Principal(username=user.username, roles=user.roles, user_id=user.id)

    session = request.session if "session" in request.scope else {}
    if session.get(SESSION_USER_ID_KEY) is not None:
        return _live_principal(session.get(SESSION_USER_ID_KEY), session.get(SESSION_USERNAME_KEY), db)

    raise InvalidCredentials("Not authenticated")


def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    """Like get_current_principal, but 403 unless the caller holds ADMIN."""
    if not principal.is_admin:
        logger.warning(f"User '{principal.username}' denied admin access")
        raise Forbidden("Admin role required")
    return principal
