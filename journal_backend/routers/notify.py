"""
journal_backend/routers/notify.py

Send a mail to the caller; only administrators may address anyone else.
The mail goes out as a background task after the response, so the answer is
always 202 and says nothing about delivery; failures only show up in the log.
"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from journal_backend.database import get_db
from journal_backend.errors import Forbidden, ValidationError
from journal_backend.schemas.response import Response, ok
from journal_backend.services.notifier import Notifier, get_notifier
from journal_backend.services.user import get_user_by_username
from journal_backend.utils.auth import Principal, get_current_principal

logger = logging.getLogger(__name__)

router = APIRouter(tags=["notify"])


class NotifyRequest(BaseModel):
    to: Optional[str] = None
    subject: str
    body: str


@router.post("", response_model=Response, status_code=202)
def send_notification(
    req: NotifyRequest,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Queue a mail: POST /api/notify
    Without 'to', the caller's stored email is used; 400 if there is none.
    A 'to' other than the caller's own email needs the ADMIN role (403).
    """
    own_email = get_user_by_username(principal.username, db).email
    recipient = req.to or own_email
    if not recipient:
        raise ValidationError("No recipient: pass 'to' or set an email on your profile")
    if recipient != own_email and not principal.is_admin:
        logger.warning(f"User '{principal.username}' denied mail to {recipient}")
        raise Forbidden("Only administrators may mail other addresses")

    background_tasks.add_task(notifier.send, recipient, req.subject, req.body)
    return ok("Mail queued", {"to": recipient}, status=202)
