"""
journal_backend/services/notifier.py

Notifier: plain-text mail over SMTP. Fire-and-forget: send() never raises;
failures are logged and reported only through its boolean result.
With no SMTP_HOST configured, sending is skipped.
"""

import logging
import os
import smtplib
from email.message import EmailMessage

logger = logging.getLogger(__name__)


class Notifier:
    def __init__(
        self,
        host: str | None,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        sender: str = "no-reply@journal.local",
        use_tls: bool = True,
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.use_tls = use_tls
        self.timeout = timeout

    def send(self, to: str, subject: str, body: str) -> bool:
        """Send one message. Returns False (after logging) on any failure."""
        if not self.host:
            logger.info(f"SMTP not configured; skipped mail to {to}")
            return False

        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(body)

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password or "")
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Could not send mail to {to}: {e}")
            return False

        logger.info(f"Mail sent to {to}")
        return True


def get_notifier() -> Notifier:
    """FastAPI dependency; tests override it with a recording fake."""
    return Notifier(
        host=os.getenv("SMTP_HOST"),
        port=int(os.getenv("SMTP_PORT", "587")),
        username=os.getenv("SMTP_USERNAME"),
        password=os.getenv("SMTP_PASSWORD"),
        sender=os.getenv("MAIL_FROM", "no-reply@journal.local"),
        use_tls=os.getenv("SMTP_USE_TLS", "true").lower() == "true",
    )
