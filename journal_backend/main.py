#!/usr/bin/env python
"""
journal_backend/main.py

Sets up the FastAPI application for the journal API.

Key Roles:
 - Loads environment variables & configures session-based authentication
 - Adds CORS middleware for frontend integration
 - Registers envelope-shaped exception handlers
 - Includes 'entries', 'users', 'admin', 'weather', 'chat' and 'notify' routers
 - Provides login (bearer token + session) and logout
"""

import logging
import os
from http import HTTPStatus
from dotenv import load_dotenv
from fastapi import FastAPI, Request, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.orm import Session

# Load environment variables from a .env file at the project root
load_dotenv()

from journal_backend.database import create_tables, get_db
from journal_backend.errors import JournalError
from journal_backend.schemas.response import Response, fail, ok
from journal_backend.schemas.user import LoginRequest, TokenRead
from journal_backend.services.user import authenticate
from journal_backend.utils.auth import (
    SECRET_KEY,
    SESSION_USER_ID_KEY,
    SESSION_USERNAME_KEY,
    create_access_token,
)

logger = logging.getLogger(__name__)

# Default CORS origins if none specified (dev environment)
default_origins = (
    "http://127.0.0.1:3000,"
    "http://localhost:3000,"
    "http://127.0.0.1:5173,"
    "http://localhost:5173"
)
raw_origins = os.getenv("CORS_ALLOW_ORIGINS", default_origins)
ALLOWED_ORIGINS = [origin.strip() for origin in raw_origins.split(",") if origin.strip()]

# ---------------------------------------------------------
# Initialize the FastAPI application
# ---------------------------------------------------------
app = FastAPI(
    title="Journal API",
    description=(
        "Per-user journal entries with bearer, basic or session authentication. "
        "Every response uses the {status, success, message, error, data} envelope."
    ),
    version="1.0",
)

# ---------------------------------------------------------
# Add Session Middleware
# ---------------------------------------------------------
app.add_middleware(
    SessionMiddleware,
    secret_key=SECRET_KEY,
    session_cookie="journal_session_id",
    https_only=os.getenv("SESSION_HTTPS_ONLY", "false").lower() == "true",
)

# ---------------------------------------------------------
# CORS Middleware
# ---------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------
# Exception Handlers: everything leaves as an envelope
# ---------------------------------------------------------
def _status_phrase(code: int) -> str:
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return "Request failed"


@app.exception_handler(JournalError)
async def journal_error_handler(request: Request, exc: JournalError):
    if exc.http_status >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    else:
        logger.warning(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    response = fail(exc.http_status, exc.default_message, exc.message)
    if exc.http_status == 401:
        response.headers["WWW-Authenticate"] = "Bearer"
    return response


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    response = fail(exc.status_code, _status_phrase(exc.status_code), str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")
    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    )
    return fail(400, "Invalid input", details)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.url.path}")
    return fail(500, "Internal error", "An unexpected error occurred.")

# ---------------------------------------------------------
# Database: Create Tables at Startup
# ---------------------------------------------------------
@app.on_event("startup")
def startup_event():
    """
    Ensures tables exist (and the optional bootstrap admin) when FastAPI starts.
    Idempotent; never deletes data.
    """
    create_tables()

# ---------------------------------------------------------
# Routers
# ---------------------------------------------------------
from journal_backend.routers import journal_entry, user, admin, weather, chat, notify

app.include_router(journal_entry.router, prefix="/api/entries", tags=["entries"])
app.include_router(user.router, prefix="/api/users", tags=["users"])
app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
app.include_router(weather.router, prefix="/api/weather", tags=["weather"])
app.include_router(chat.router, prefix="/api/chat", tags=["chat"])
app.include_router(notify.router, prefix="/api/notify", tags=["notify"])

# ---------------------------------------------------------
# Login / Logout Endpoints
# ---------------------------------------------------------
@app.post("/api/login", response_model=Response)
def login(
    login_req: LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Login:
      1) Accepts JSON { "username": "...", "password": "..." }
      2) Checks the password against the stored bcrypt hash (401 on mismatch)
      3) Stores the user id and username in the session
      4) Returns a bearer token in the envelope's data
    """
    user = authenticate(login_req.username, login_req.password, db)

    request.session[SESSION_USER_ID_KEY] = user.id
    request.session[SESSION_USERNAME_KEY] = user.username

    token = create_access_token(user.id, user.username)
    return ok(f"Logged in as {user.username}", TokenRead(access_token=token))


@app.post("/api/logout", response_model=Response)
def logout(request: Request):
    """
    Clear the session to log out the user. Bearer tokens stay valid until they expire.
    """
    request.session.clear()
    return ok("Logged out successfully")

# ---------------------------------------------------------
# Root Route
# ---------------------------------------------------------
@app.get("/", response_model=Response)
def read_root():
    """
    Basic root path to confirm the API is running.
    """
    return ok("Welcome to the Journal API")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("journal_backend.main:app", host="127.0.0.1", port=int(os.getenv("PORT", "8000")))
