# trainer_portal/emailer.py

import logging
import smtplib
import socket
from email.message import EmailMessage
from typing import Protocol

from trainer_portal.config import Settings
from trainer_portal.errors import TransientDeliveryError

logger = logging.getLogger(__name__)


class Mailer(Protocol):
    def send(self, to_email: str, subject: str, body: str) -> None:
        ...


class SmtpMailer:
    """
    Plain-text email over SMTP + STARTTLS.

    send() raises TransientDeliveryError when email is disabled, SMTP is not
    configured, or the exchange fails. Callers decide whether that matters.
    """

    def __init__(self, settings: Settings, timeout: float = 15):
        self.settings = settings
        self.timeout = timeout

    def send(self, to_email: str, subject: str, body: str) -> None:
        s = self.settings

        if not s.email_enabled:
            raise TransientDeliveryError("Email disabled (EMAIL_ENABLED is off)")

        if not s.smtp_configured:
            raise TransientDeliveryError("Missing SMTP_* settings (host/username/password/from)")

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = f"{s.smtp_from_name} <{s.from_email}>"
        msg["To"] = to_email
        msg.set_content(body)

        try:
            with smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=self.timeout) as server:
                server.ehlo()
                server.starttls()
                server.login(s.smtp_username, s.smtp_password)
                server.send_message(msg)
        except socket.gaierror as e:
            raise TransientDeliveryError(f"DNS/host lookup failed for SMTP_HOST='{s.smtp_host}': {e}") from e
        except (smtplib.SMTPException, OSError) as e:
            raise TransientDeliveryError(str(e)) from e

        logger.info("Email sent to %s", to_email)


def send_email_if_configured(mailer: Mailer, to_email: str, subject: str, body: str) -> bool:
    """
    Request-path helper. NEVER raises. Returns True if sent, False if skipped/failed.
    """
    try:
        mailer.send(to_email, subject, body)
        return True
    except TransientDeliveryError as e:
        logger.warning("Email to %s not sent: %s", to_email, e.message)
        return False
