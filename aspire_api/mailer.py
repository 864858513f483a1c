"""SMTP mailer used for contact form notifications."""

from __future__ import annotations

import logging
from email.message import EmailMessage

import aiosmtplib

from .config_loader import Config
from .service_base import BaseService

SMTP_TIMEOUT = 10


class Mailer(BaseService):
    """Sends plain-text + HTML email through an SMTP relay.

    Delivery uses aiosmtplib so the SMTP conversation runs on the event
    loop. A mailer without a host is disabled and only logs.
    """

    def __init__(
        self,
        *,
        host: str,
        port: int = 587,
        username: str = "",
        password: str = "",
        sender: str = "noreply@aspirearchitecture.com",
        use_tls: bool = True,
        logger: logging.Logger | None = None,
    ):
        super().__init__(logger=logger)
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.use_tls = use_tls

    @classmethod
    def from_config(cls, app_config: Config) -> Mailer:
        return cls(
            host=app_config.smtp_host,
            port=app_config.smtp_port,
            username=app_config.smtp_user,
            password=app_config.smtp_password,
            sender=app_config.from_email,
            use_tls=app_config.smtp_use_tls,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.host)

    async def send(self, *, to: str, subject: str, text: str, html: str | None = None) -> bool:
        """
        Deliver one message.

        Returns:
            False when the mailer is disabled, True once the relay accepted it

        Raises:
            aiosmtplib.SMTPException, OSError: On delivery failure
        """
        if not self.enabled:
            self.logger.warning("SMTP host not configured; skipping email to %s", to)
            return False

        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(text)
        if html:
            message.add_alternative(html, subtype="html")

        await aiosmtplib.send(
            message,
            hostname=self.host,
            port=self.port,
            username=self.username or None,
            password=self.password or None,
            start_tls=self.use_tls,
            timeout=SMTP_TIMEOUT,
        )
        self.logger.info("Email sent to %s", to)
        return True
