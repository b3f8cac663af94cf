"""
journal_backend/errors.py

Domain exceptions raised by the service layer and the auth helpers.
Each carries the HTTP status the boundary should answer with; the handlers
registered in main.py turn them into the standard response envelope.
"""


class JournalError(Exception):
    """Base class for every error the API reports through the envelope."""

    http_status = 500
    default_message = "Internal error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# --- 404 ---------------------------------------------------------------

class NotFound(JournalError):
    http_status = 404
    default_message = "Not found"


class UserNotFound(NotFound):
    default_message = "User not found"


class EntryNotFound(NotFound):
    default_message = "Entry not found"


# --- 400 ---------------------------------------------------------------

class DuplicateKey(JournalError):
    http_status = 400
    default_message = "Duplicate key"


class DuplicateUsername(DuplicateKey):
    default_message = "Username already registered"


class ValidationError(JournalError):
    http_status = 400
    default_message = "Invalid input"


# --- 401 / 403 ---------------------------------------------------------

class InvalidCredentials(JournalError):
    http_status = 401
    default_message = "Invalid username or password."


class Forbidden(JournalError):
    http_status = 403
    default_message = "Insufficient role"


# --- 502 ---------------------------------------------------------------

class UpstreamFailure(JournalError):
    """A collaborator (mail, weather, chat) call failed."""
    http_status = 502
    default_message = "Upstream service failed"
