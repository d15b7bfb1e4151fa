"""Token resolution for the public appointment links."""

from __future__ import annotations

import hmac
import uuid

from sqlalchemy.orm import Session

from consultdesk.core.exceptions import NotFoundError, StaleStateError, ValidationError
from consultdesk.db.models import Appointment, AppointmentToken, Client
from consultdesk.services import appointment_service


def resolve(db: Session, token: str) -> uuid.UUID:
    """Map a token to its client id. Raises NotFoundError for unknown tokens."""
    record = db.query(AppointmentToken).filter(AppointmentToken.token == token).first()
    if not record:
        raise NotFoundError()
    return record.client_id


def validate_current(token: str, appointment: Appointment | None) -> bool:
    """True only if the token is the one on the client's current appointment."""
    if appointment is None or not appointment.token:
        return False
    return hmac.compare_digest(token.encode(), appointment.token.encode())


def resolve_current(db: Session, token: str | None) -> tuple[Client, Appointment]:
    """
    Resolve a link token to (client, current appointment).

    Raises:
        ValidationError: token missing
        NotFoundError: token unknown, or its client no longer exists
        StaleStateError: token known but the appointment was replaced
    """
    if not token:
        raise ValidationError()

    client_id = resolve(db, token)
    client = appointment_service.get_client(db, client_id)
    if not client:
        raise NotFoundError("Client not found.")

    appointment = appointment_service.get_appointment_for_client(db, client_id)
    if not validate_current(token, appointment):
        raise StaleStateError()
    return client, appointment
