"""
journal_backend/schemas/response.py

The envelope every endpoint answers with, success or failure:

    {"status": 200, "success": true, "message": "...", "error": null, "data": ...}

Routers build it with ok(); the exception handlers in main.py build it with fail().
"""

from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class Response(BaseModel):
    status: int
    success: bool
    message: str
    error: Optional[str] = None
    data: Optional[Any] = None


def ok(message: str, data: Any = None, status: int = 200) -> JSONResponse:
    """Successful envelope; the HTTP status matches the 'status' field."""
    body = Response(status=status, success=True, message=message, data=data)
    return JSONResponse(status_code=status, content=jsonable_encoder(body))


def fail(status: int, message: str, error: Optional[str] = None) -> JSONResponse:
    body = Response(status=status, success=False, message=message, error=error)
    return JSONResponse(status_code=status, content=jsonable_encoder(body))
