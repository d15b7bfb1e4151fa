"""Tests for email transports and the Notifier."""

import smtplib
import time

import httpx
import pytest

from consultdesk.core.config import Settings, SmtpConfig
from consultdesk.core.exceptions import TransportError
from consultdesk.db.enums import NotificationStatus, NotificationType
from consultdesk.db.models import NotificationLog
from consultdesk.services import email_transport
from consultdesk.services.email_transport import (
    DryRunTransport,
    EmailMessage,
    ResendTransport,
    SmtpTransport,
    build_transport,
)
from consultdesk.services.notifier import Notifier

MESSAGE = EmailMessage(to="client@example.com", subject="Hello", html="<p>Hi <b>there</b></p>")


def _smtp_config(**overrides) -> SmtpConfig:
    values = {
        "host": "smtp.example.com",
        "port": 587,
        "username": "bot@example.com",
        "password": "pw",
        "from_email": "bot@example.com",
        "from_name": "AB Consultants",
        "timeout_seconds": 5.0,
    }
    values.update(overrides)
    return SmtpConfig(**values)


class FakeSMTP:
    instances: list["FakeSMTP"] = []
    fail_login = False
    delay = 0.0

    def __init__(self, host, port, timeout=None, **kwargs):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.calls: list[str] = []
        self.sent: list[tuple] = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.calls.append("quit")
        return False

    def starttls(self, context=None):
        self.calls.append("starttls")

    def login(self, username, password):
        if FakeSMTP.fail_login:
            raise smtplib.SMTPAuthenticationError(535, b"bad credentials")
        self.calls.append("login")

    def sendmail(self, from_addr, to_addrs, msg):
        if FakeSMTP.delay:
            time.sleep(FakeSMTP.delay)
        self.sent.append((from_addr, to_addrs, msg))


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    FakeSMTP.fail_login = False
    FakeSMTP.delay = 0.0
    monkeypatch.setattr(email_transport.smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


@pytest.mark.asyncio
async def test_smtp_transport_sends_with_starttls(fake_smtp):
    transport = SmtpTransport(_smtp_config())

    message_id = await transport.send(MESSAGE)

    assert message_id
    server = fake_smtp.instances[0]
    assert (server.host, server.port, server.timeout) == ("smtp.example.com", 587, 5.0)
    assert server.calls == ["starttls", "login", "quit"]
    from_addr, to_addrs, raw = server.sent[0]
    assert from_addr == "bot@example.com"
    assert to_addrs == ["client@example.com"]
    assert "Subject: Hello" in raw


@pytest.mark.asyncio
async def test_smtp_transport_wraps_errors(fake_smtp):
    fake_smtp.fail_login = True
    transport = SmtpTransport(_smtp_config())

    with pytest.raises(TransportError, match="SMTPAuthenticationError"):
        await transport.send(MESSAGE)


@pytest.mark.asyncio
async def test_smtp_transport_times_out(fake_smtp):
    fake_smtp.delay = 0.5
    transport = SmtpTransport(_smtp_config(timeout_seconds=0.05))

    with pytest.raises(TransportError, match="timed out"):
        await transport.send(MESSAGE)


def _mock_async_client(monkeypatch, handler):
    real_async_client = httpx.AsyncClient

    def factory(*args, **kwargs):
        return real_async_client(*args, transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(email_transport.httpx, "AsyncClient", factory)
    monkeypatch.setattr(email_transport, "RESEND_RETRY_BASE_DELAY", 0.0)


@pytest.mark.asyncio
async def test_resend_transport_returns_message_id(monkeypatch):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = request.read().decode()
        return httpx.Response(200, json={"id": "msg_123"})

    _mock_async_client(monkeypatch, handler)
    transport = ResendTransport("re_key", "bot@example.com", "AB Consultants")

    assert await transport.send(MESSAGE) == "msg_123"
    assert seen["auth"] == "Bearer re_key"
    assert "client@example.com" in seen["body"]
    assert "Hi there" in seen["body"]  # plain-text alternative


@pytest.mark.asyncio
async def test_resend_transport_retries_then_succeeds(monkeypatch):
    attempts = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        attempts["count"] += 1
        if attempts["count"] == 1:
            return httpx.Response(503)
        return httpx.Response(200, json={"id": "msg_retry"})

    _mock_async_client(monkeypatch, handler)
    transport = ResendTransport("re_key", "bot@example.com", "AB Consultants")

    assert await transport.send(MESSAGE) == "msg_retry"
    assert attempts["count"] == 2


@pytest.mark.asyncio
async def test_resend_transport_raises_on_rejection(monkeypatch):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(422, json={"message": "Invalid `to` field"})

    _mock_async_client(monkeypatch, handler)
    transport = ResendTransport("re_key", "bot@example.com", "AB Consultants")

    with pytest.raises(TransportError, match="422"):
        await transport.send(MESSAGE)


@pytest.mark.asyncio
async def test_resend_transport_connection_failure_raises_transport_error(monkeypatch):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    _mock_async_client(monkeypatch, handler)
    transport = ResendTransport("re_key", "bot@example.com", "AB Consultants")

    with pytest.raises(TransportError, match="Resend connection error"):
        await transport.send(MESSAGE)


def test_build_transport_prefers_resend_then_smtp():
    assert isinstance(build_transport(Settings(RESEND_API_KEY="re_key")), ResendTransport)
    assert isinstance(
        build_transport(Settings(RESEND_API_KEY="", SMTP_USERNAME="u", SMTP_PASSWORD="p")),
        SmtpTransport,
    )
    assert isinstance(
        build_transport(Settings(RESEND_API_KEY="", SMTP_USERNAME="", SMTP_PASSWORD="")),
        DryRunTransport,
    )


def test_smtp_config_from_settings_falls_back_to_username():
    config = Settings(SMTP_USERNAME="bot@example.com", SMTP_PASSWORD="p", SMTP_FROM="").smtp_config

    assert config.from_email == "bot@example.com"
    assert config.port == 587


class _ExplodingTransport:
    name = "exploding"

    async def send(self, message):
        raise RuntimeError("unexpected")


@pytest.mark.asyncio
async def test_notifier_never_raises_and_logs_attempts(db, make_client):
    owner = make_client()
    notifier = Notifier(_ExplodingTransport())

    result = await notifier.send(
        "someone@example.com",
        "Subject",
        "<p>Body</p>",
        db=db,
        notification_type=NotificationType.APPOINTMENT_CONFIRMED,
        client_id=owner.id,
    )

    assert result.success is False
    assert "RuntimeError" in result.error
    log = db.query(NotificationLog).one()
    assert log.status == NotificationStatus.FAILED.value
    assert log.client_id == owner.id


@pytest.mark.asyncio
async def test_notifier_success(transport):
    notifier = Notifier(transport)

    result = await notifier.send("a@example.com", "S", "<p>B</p>")

    assert result.success is True
    assert result.message_id == "fake-1"
    assert transport.sent[0].to == "a@example.com"


@pytest.mark.asyncio
async def test_dry_run_transport_accepts_message():
    assert await DryRunTransport().send(MESSAGE) is None
