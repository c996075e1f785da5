"""
lecturenotes.notify - Email delivery of finished notes.
"""

from __future__ import annotations

import smtplib
from email.message import EmailMessage
from typing import Any

from lecturenotes.exceptions import NotificationError
from lecturenotes.logging import get_logger

log = get_logger("notify")


class EmailNotifier:
    """Send the notes link to a student over SMTP."""

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        sender: str = "notes@localhost",
        use_tls: bool = True,
        smtp_factory: Any = smtplib.SMTP,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.use_tls = use_tls
        self.smtp_factory = smtp_factory

    @classmethod
    def from_config(cls, config: Any) -> EmailNotifier | None:
        """Create a notifier, or None when email is not configured."""
        settings = config.email
        if not settings.enabled:
            return None
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.username,
            password=settings.password,
            sender=settings.sender,
            use_tls=settings.use_tls,
        )

    def build_message(self, recipient: str, pdf_url: str) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = "Your lecture notes are ready"
        message["From"] = self.sender
        message["To"] = recipient
        message.set_content(
            "Your AI-generated lecture notes are ready.\n\n"
            f"Download the PDF: {pdf_url}\n"
        )
        return message

    def send(self, recipient: str, pdf_url: str) -> None:
        """Email the PDF link.

        Raises:
            NotificationError: If the SMTP exchange fails
        """
        message = self.build_message(recipient, pdf_url)
        try:
            with self.smtp_factory(self.host, self.port, timeout=30) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username and self.password:
                    smtp.login(self.username, self.password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"Could not email notes to {recipient}: {e}") from e
        log.info("Emailed notes link to %s", recipient)
