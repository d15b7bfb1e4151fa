"""Email transports.

A transport delivers one message or raises TransportError. It is built once
at startup from settings (build_transport) and handed to the Notifier, so no
module keeps a lazily cached global connection.
"""

from __future__ import annotations

import asyncio
import html as html_module
import logging
import re
import smtplib
import ssl
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, make_msgid
from typing import Protocol

import httpx

from consultdesk.core.config import Settings, SmtpConfig
from consultdesk.core.exceptions import TransportError
from consultdesk.services.http_service import RetryPolicy, call_provider

logger = logging.getLogger(__name__)

RESEND_SEND_URL = "https://api.resend.com/emails"
RESEND_MAX_ATTEMPTS = 3
RESEND_RETRY_BASE_DELAY = 0.5
RESEND_RETRY_MAX_DELAY = 4.0


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    html: str


class EmailTransport(Protocol):
    name: str

    async def send(self, message: EmailMessage) -> str | None:
        """Deliver the message; return the provider message id if any."""
        ...


def html_to_text(content: str) -> str:
    """Plain-text alternative for the HTML body (inbox previews)."""
    text = re.sub(r"<(script|style)[^>]*>.*?</\1>", "", content, flags=re.DOTALL | re.I)
    text = re.sub(r"<[^>]+>", " ", text)
    text = re.sub(r"\s+", " ", text).strip()
    return html_module.unescape(text)


class SmtpTransport:
    """SMTP delivery (STARTTLS on 587, implicit TLS on 465)."""

    name = "smtp"

    def __init__(self, config: SmtpConfig):
        self.config = config

    def _build_mime(self, message: EmailMessage) -> MIMEMultipart:
        mime = MIMEMultipart("alternative")
        mime["Subject"] = message.subject
        mime["From"] = formataddr((self.config.from_name, self.config.from_email))
        mime["To"] = message.to
        mime["Message-ID"] = make_msgid()
        mime.attach(MIMEText(html_to_text(message.html), "plain", "utf-8"))
        mime.attach(MIMEText(message.html, "html", "utf-8"))
        return mime

    def _send_sync(self, message: EmailMessage) -> str:
        cfg = self.config
        mime = self._build_mime(message)
        context = ssl.create_default_context()

        if cfg.port == 465:
            server = smtplib.SMTP_SSL(
                cfg.host, cfg.port, context=context, timeout=cfg.timeout_seconds
            )
        else:
            server = smtplib.SMTP(cfg.host, cfg.port, timeout=cfg.timeout_seconds)
        with server:
            if cfg.port != 465 and cfg.use_tls:
                server.starttls(context=context)
            if cfg.username:
                server.login(cfg.username, cfg.password)
            server.sendmail(cfg.from_email, [message.to], mime.as_string())
        return mime["Message-ID"]

    async def send(self, message: EmailMessage) -> str | None:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._send_sync, message),
                timeout=self.config.timeout_seconds,
            )
        except (asyncio.TimeoutError, TimeoutError) as exc:
            raise TransportError(
                f"SMTP send timed out after {self.config.timeout_seconds}s"
            ) from exc
        except (smtplib.SMTPException, OSError) as exc:
            raise TransportError(f"SMTP error: {exc.__class__.__name__}: {exc}") from exc


class ResendTransport:
    """Resend HTTP API delivery with retry/backoff."""

    name = "resend"

    def __init__(
        self,
        api_key: str,
        from_email: str,
        from_name: str,
        timeout_seconds: float = 20.0,
    ):
        self.api_key = api_key
        self.from_email = from_email
        self.from_name = from_name
        self.timeout_seconds = timeout_seconds

    async def send(self, message: EmailMessage) -> str | None:
        from_address = (
            f"{self.from_name} <{self.from_email}>" if self.from_name else self.from_email
        )
        payload: dict[str, object] = {
            "from": from_address,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
        }
        text = html_to_text(message.html)
        if text:
            payload["text"] = text

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        policy = RetryPolicy(
            max_attempts=RESEND_MAX_ATTEMPTS,
            base_delay=RESEND_RETRY_BASE_DELAY,
            max_delay=RESEND_RETRY_MAX_DELAY,
        )
        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:

            async def request_fn() -> httpx.Response:
                return await client.post(RESEND_SEND_URL, headers=headers, json=payload)

            response = await call_provider("Resend", request_fn, policy)

        if 200 <= response.status_code < 300:
            try:
                data = response.json()
            except ValueError:
                return None
            return data.get("id") if isinstance(data, dict) else None

        error_detail = None
        try:
            data = response.json()
            if isinstance(data, dict):
                error_detail = data.get("message") or data.get("error")
        except ValueError:
            pass

        error_msg = f"Resend API error: {response.status_code}"
        if error_detail:
            error_msg = f"{error_msg} ({error_detail})"
        raise TransportError(error_msg)


class DryRunTransport:
    """Logs instead of sending. Used when no provider is configured."""

    name = "dry_run"

    async def send(self, message: EmailMessage) -> str | None:
        logger.warning(
            "Email transport not configured, dropping email to %s: %s",
            message.to,
            message.subject,
        )
        return None


def build_transport(settings: Settings) -> EmailTransport:
    """Pick the transport from configuration (Resend, then SMTP, then dry-run)."""
    if settings.RESEND_API_KEY:
        return ResendTransport(
            api_key=settings.RESEND_API_KEY,
            from_email=settings.SMTP_FROM or settings.SMTP_USERNAME,
            from_name=settings.BRAND_NAME,
            timeout_seconds=settings.EMAIL_TIMEOUT_SECONDS,
        )
    if settings.smtp_configured:
        return SmtpTransport(settings.smtp_config)
    return DryRunTransport()
