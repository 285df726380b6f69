"""Outbound email for Email nodes.

The default sender talks SMTP. A tenant's EMAIL integration, when
present, overrides the process-wide SMTP settings.
"""

import asyncio
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Protocol

import structlog

from app.config import Settings, get_settings
from core.constants import IntegrationType

logger = structlog.get_logger(__name__)


class EmailSender(Protocol):
    async def send_email(self, tenant_id: str, to: str, subject: str, body: str) -> None:
        """Deliver one message; raise on failure."""


class SmtpEmailSender:
    """EmailSender that delivers through smtplib in a worker thread.

    Config keys read from the tenant integration:
        smtp_host, smtp_port, smtp_user, smtp_password,
        from_address, use_tls
    """

    def __init__(self, settings: Settings = None, credentials=None):
        self.settings = settings or get_settings()
        self.credentials = credentials

    async def _smtp_config(self, tenant_id: str) -> dict:
        config = {
            "smtp_host": self.settings.SMTP_HOST,
            "smtp_port": self.settings.SMTP_PORT,
            "smtp_user": self.settings.SMTP_USER,
            "smtp_password": self.settings.SMTP_PASSWORD,
            "from_address": self.settings.SMTP_FROM_ADDRESS,
            "use_tls": self.settings.SMTP_USE_TLS,
        }
        if self.credentials is not None:
            tenant_config = await self.credentials.get_integration_credentials(
                tenant_id, IntegrationType.EMAIL
            )
            config.update({k: v for k, v in (tenant_config or {}).items() if k in config})
        return config

    async def send_email(self, tenant_id: str, to: str, subject: str, body: str) -> None:
        config = await self._smtp_config(tenant_id)

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = config["from_address"]
        msg["To"] = to
        msg.attach(MIMEText(body, "plain"))
        msg.attach(MIMEText(body.replace("\n", "<br>"), "html"))

        # smtplib blocks, keep it off the event loop
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, lambda: self._send_smtp(config, to, msg))
        logger.info("Email sent", tenant_id=tenant_id, to=to)

    @staticmethod
    def _send_smtp(config: dict, to_addr: str, msg: MIMEMultipart) -> None:
        """Synchronous SMTP send."""
        with smtplib.SMTP(config["smtp_host"], int(config["smtp_port"])) as server:
            if config["use_tls"]:
                server.starttls()
            if config["smtp_user"] and config["smtp_password"]:
                server.login(config["smtp_user"], config["smtp_password"])
            server.sendmail(config["from_address"], to_addr, msg.as_string())

