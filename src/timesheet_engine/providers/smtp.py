"""SMTP notifier."""

from __future__ import annotations

import logging
import smtplib
from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid

from timesheet_engine.providers.base import EmailMessageSpec, SendResult

logger = logging.getLogger(__name__)


class SmtpNotifier:
    """Delivers email through an SMTP relay with a single attempt per message."""

    name = "smtp"

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        default_sender: str = "",
        timeout: float = 30.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.default_sender = default_sender
        self.timeout = timeout

    def build_mime(self, message: EmailMessageSpec) -> MIMEMultipart:
        msg = MIMEMultipart("mixed")
        msg["From"] = message.sender or self.default_sender
        msg["To"] = ", ".join(message.to)
        msg["Subject"] = message.subject
        msg["Message-ID"] = make_msgid()

        body = MIMEMultipart("alternative")
        body.attach(MIMEText(message.text, "plain"))
        if message.html:
            body.attach(MIMEText(message.html, "html"))
        msg.attach(body)

        for attachment in message.attachments:
            maintype, _, subtype = attachment.mime_type.partition("/")
            part = MIMEBase(maintype, subtype or "octet-stream")
            part.set_payload(attachment.content)
            encoders.encode_base64(part)
            part.add_header(
                "Content-Disposition", f'attachment; filename="{attachment.filename}"'
            )
            msg.attach(part)
        return msg

    def send(self, message: EmailMessageSpec) -> SendResult:
        msg = self.build_mime(message)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                if self.username:
                    server.login(self.username, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error(
                "SMTP delivery to %s failed: %s", ", ".join(message.to), exc
            )
            return SendResult(success=False, error=str(exc))

        logger.info("Sent '%s' to %s", message.subject, ", ".join(message.to))
        return SendResult(success=True, message_id=msg["Message-ID"])
