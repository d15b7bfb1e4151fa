"""
Test configuration and fixtures.

Provides:
- In-memory SQLite database, tables created and dropped per test
- Recording email transport (no network)
- HTTPX AsyncClient wired to the app with db/notifier overrides
- Factories for clients, appointments and submissions
"""
import os
import uuid
from datetime import date
from typing import AsyncGenerator, Generator

import pytest

# Must be set before the app (and settings) are imported
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["TESTING"] = "1"
os.environ["RESEND_API_KEY"] = ""
os.environ["SMTP_USERNAME"] = ""
os.environ["SMTP_PASSWORD"] = ""

from httpx import AsyncClient, ASGITransport
from sqlalchemy.orm import Session

from consultdesk.core.deps import get_db, get_notifier
from consultdesk.core.exceptions import TransportError
from consultdesk.db import models  # noqa: F401
from consultdesk.db.base import Base
from consultdesk.db.enums import AppointmentStatus, ClientStatus
from consultdesk.db.models import Appointment, Client, MonthlySubmission
from consultdesk.db.session import SessionLocal, engine
from consultdesk.main import app
from consultdesk.services import appointment_service
from consultdesk.services.email_transport import EmailMessage
from consultdesk.services.notifier import Notifier


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Fresh schema per test.

    App code commits freely; dropping the tables afterwards isolates tests.
    """
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


# =============================================================================
# Email Fixtures
# =============================================================================

class FakeTransport:
    """Records messages instead of sending them; can fail on demand."""

    name = "fake"

    def __init__(self):
        self.sent: list[EmailMessage] = []
        self.fail_for: set[str] = set()
        self.fail_all = False

    async def send(self, message: EmailMessage) -> str | None:
        if self.fail_all or message.to in self.fail_for:
            raise TransportError(f"Simulated failure for {message.to}")
        self.sent.append(message)
        return f"fake-{len(self.sent)}"

    def sent_to(self, address: str) -> list[EmailMessage]:
        return [m for m in self.sent if m.to == address]


@pytest.fixture(scope="function")
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture(scope="function")
def notifier(transport: FakeTransport) -> Notifier:
    return Notifier(transport)


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def client(db: Session, notifier: Notifier) -> AsyncGenerator[AsyncClient, None]:
    """
    Create AsyncClient for testing the public and internal endpoints.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as c:
        yield c

    app.dependency_overrides.clear()


# =============================================================================
# Data Factories
# =============================================================================

@pytest.fixture(scope="function")
def make_client(db: Session):
    """Factory creating an active client with an owner email."""
    def _make(**overrides) -> Client:
        suffix = uuid.uuid4().hex[:8]
        values = {
            "company_name": f"Company {suffix}",
            "owner_name": "Jane Owner",
            "owner_email": f"owner-{suffix}@example.com",
            "assigned_consultant_email": f"consultant-{suffix}@example.com",
            "status": ClientStatus.ACTIVE.value,
        }
        values.update(overrides)
        record = Client(**values)
        db.add(record)
        db.commit()
        db.refresh(record)
        return record

    return _make


@pytest.fixture(scope="function")
def make_appointment(db: Session):
    """Factory scheduling an appointment (new token) with an optional status."""
    def _make(
        client: Client,
        appointment_date: date,
        appointment_time: str = "10:00",
        location: str | None = "12 Rue de Paris, Saint-Denis",
        status: AppointmentStatus = AppointmentStatus.SCHEDULED,
    ) -> Appointment:
        appointment = appointment_service.schedule_appointment(
            db,
            client_id=client.id,
            appointment_date=appointment_date,
            appointment_time=appointment_time,
            location=location,
        )
        if status != AppointmentStatus.SCHEDULED:
            appointment.status = status.value
            if status == AppointmentStatus.PENDING_CHANGE:
                appointment.proposed_date = appointment_date
                appointment.proposed_time = "15:00"
            db.commit()
            db.refresh(appointment)
        return appointment

    return _make


@pytest.fixture(scope="function")
def make_submission(db: Session):
    def _make(client: Client, year: int, month: str, is_submitted: bool = True):
        record = MonthlySubmission(
            client_id=client.id, year=year, month=month, is_submitted=is_submitted
        )
        db.add(record)
        db.commit()
        return record

    return _make
