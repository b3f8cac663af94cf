#!/usr/bin/env python
"""
journal_backend/database.py

Sets up the SQLAlchemy database connection, session management, and helper functions for creating tables.
The users table and the journal_entries table are joined through the user_journal_entries
association table, which holds each user's set of entry references.

Key Features:
- Loads environment variables from .env at project root
- Handles default SQLite or custom DB URLs
- Provides get_db() for FastAPI dependency injection
- Optionally seeds a bootstrap administrator from ADMIN_USERNAME / ADMIN_PASSWORD (idempotent)

Security Notes:
- No default user is created unless both ADMIN_* variables are set
- Passwords are hashed with bcrypt in the user model
- For production, ensure HTTPS and secure session cookies if using session-based auth
"""

import os
import logging
from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.types import TypeDecorator, String
import datetime

# ------------------------------------------------------------------
# 0) Environment Setup
# ------------------------------------------------------------------
BASE_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(BASE_DIR)

dotenv_path = os.path.join(PROJECT_ROOT, ".env")
load_dotenv(dotenv_path=dotenv_path)

# ------------------------------------------------------------------
# 1) Logging Setup
# ------------------------------------------------------------------
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)
logger.debug(f"Loaded .env from: {dotenv_path}")

# Database file setup
DATABASE_FILE_ENV = os.getenv("DATABASE_FILE", "journal_backend/journal.db")
DATABASE_FILE = (
    DATABASE_FILE_ENV if os.path.isabs(DATABASE_FILE_ENV)
    else os.path.join(PROJECT_ROOT, DATABASE_FILE_ENV)
)
db_dir = os.path.dirname(DATABASE_FILE)
if not os.path.exists(db_dir):
    os.makedirs(db_dir)
    logger.debug(f"Created directory for database: {db_dir}")

DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{DATABASE_FILE}")
logger.debug(f"DATABASE_URL: {DATABASE_URL}")

# ------------------------------------------------------------------
# 2) SQLAlchemy Engine and Session Setup
# ------------------------------------------------------------------
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# ------------------------------------------------------------------
# 3) Custom UTC DateTime for SQLite
# ------------------------------------------------------------------
class UTCDateTime(TypeDecorator):
    """
    Stores Python datetime objects as ISO8601 strings with 'Z' in SQLite,
    ensuring they are read back as offset-aware UTC datetimes.
    """
    impl = String
    cache_ok = True

    def process_bind_param(self, value, dialect):
        """Convert Python datetime -> string before saving to DB."""
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=datetime.timezone.utc)
        return value.astimezone(datetime.timezone.utc).isoformat().replace("+00:00", "Z")

    def process_result_value(self, value, dialect):
        """Convert string -> Python datetime (UTC) after fetching from DB."""
        if value is None:
            return None
        value = value.replace("Z", "+00:00")
        return datetime.datetime.fromisoformat(value)


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)

# ------------------------------------------------------------------
# 4) FastAPI Dependency Injection
# ------------------------------------------------------------------
def get_db():
    """
    Provides a DB session for FastAPI routes. Yields a SessionLocal instance
    and closes it after use to prevent leaks.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

# ------------------------------------------------------------------
# 5) Table Initialization & Bootstrap Admin
# ------------------------------------------------------------------
def create_tables(bind=None):
    """
    Creates all tables (idempotent) and, when ADMIN_USERNAME and ADMIN_PASSWORD
    are both set, makes sure that administrator exists. An existing user with
    that name is left untouched.
    """
    bind = bind or engine

    # Import models to register with Base.metadata
    from journal_backend.models import User, JournalEntry  # noqa: F401

    Base.metadata.create_all(bind=bind)
    logger.info("Database tables created or verified.")

    admin_username = os.getenv("ADMIN_USERNAME")
    admin_password = os.getenv("ADMIN_PASSWORD")
    if not (admin_username and admin_password):
        logger.debug("No ADMIN_USERNAME/ADMIN_PASSWORD set. Skipping admin bootstrap.")
        return

    from journal_backend.errors import DuplicateUsername
    from journal_backend.services.user import register_admin, find_by_username

    Session = sessionmaker(bind=bind, autocommit=False, autoflush=False)
    db = Session()
    try:
        if find_by_username(admin_username, db):
            logger.debug(f"Bootstrap admin '{admin_username}' already present.")
            return
        register_admin(admin_username, admin_password, db)
        logger.info(f"Bootstrap admin '{admin_username}' created.")
    except DuplicateUsername as e:
        # Another worker created it between the lookup and the insert
        logger.warning(f"Bootstrap admin insert raced: {e}")
    finally:
        db.close()


if __name__ == "__main__":
    create_tables()
