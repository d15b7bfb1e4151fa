"""Appointment store: reads, replacement, reminder markers and guarded updates."""

from __future__ import annotations

import logging
import secrets
import uuid
from datetime import date

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from consultdesk.core.structured_logging import build_log_context
from consultdesk.db.enums import AppointmentStatus, ClientStatus, ReminderKind
from consultdesk.db.models import (
    Appointment,
    AppointmentReminder,
    AppointmentToken,
    Client,
)
from consultdesk.utils.dates import is_valid_time

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32


def generate_token() -> str:
    """Opaque, unguessable appointment token (URL safe)."""
    return secrets.token_urlsafe(TOKEN_BYTES)


# =============================================================================
# Reads
# =============================================================================


def get_client(db: Session, client_id: uuid.UUID) -> Client | None:
    return db.query(Client).filter(Client.id == client_id).first()


def list_active_clients(db: Session) -> list[Client]:
    """Active clients with their appointment loaded, in stable order."""
    return (
        db.query(Client)
        .options(joinedload(Client.appointment))
        .filter(Client.status == ClientStatus.ACTIVE.value)
        .order_by(Client.created_at, Client.id)
        .all()
    )


def get_appointment_for_client(db: Session, client_id: uuid.UUID) -> Appointment | None:
    return db.query(Appointment).filter(Appointment.client_id == client_id).first()


def reminders_sent(db: Session, token: str) -> set[int]:
    """Client reminder offsets already recorded for this appointment instance."""
    rows = (
        db.query(AppointmentReminder.offset_days)
        .filter(
            AppointmentReminder.token == token,
            AppointmentReminder.kind == ReminderKind.CLIENT.value,
        )
        .all()
    )
    return {row[0] for row in rows}


# =============================================================================
# Replacement
# =============================================================================


def schedule_appointment(
    db: Session,
    *,
    client_id: uuid.UUID,
    appointment_date: date,
    appointment_time: str,
    location: str | None = None,
) -> Appointment:
    """
    Create or replace the client's appointment.

    Always mints a new token and records it in appointment_tokens. Links
    carrying a previous token keep resolving to the client but no longer
    match the appointment, so they are reported as stale. Reminder markers
    are keyed by token, so the new instance starts with none.
    """
    if not is_valid_time(appointment_time):
        raise ValueError(f"Invalid appointment time: {appointment_time!r}")

    token = generate_token()
    db.add(AppointmentToken(token=token, client_id=client_id))

    appointment = get_appointment_for_client(db, client_id)
    if appointment is None:
        appointment = Appointment(client_id=client_id)
        db.add(appointment)

    appointment.appointment_date = appointment_date
    appointment.appointment_time = appointment_time
    appointment.location = location
    appointment.status = AppointmentStatus.SCHEDULED.value
    appointment.token = token
    appointment.proposed_date = None
    appointment.proposed_time = None

    db.commit()
    db.refresh(appointment)
    logger.info(
        "Appointment scheduled for %s",
        appointment_date.isoformat(),
        extra=build_log_context(client_id=str(client_id), token=token),
    )
    return appointment


# =============================================================================
# Reminder markers (atomic add-to-set)
# =============================================================================


def claim_reminder(
    db: Session,
    appointment: Appointment,
    kind: ReminderKind,
    offset_days: int,
) -> bool:
    """
    Record a reminder marker before sending.

    Returns False when the marker already exists (sent earlier, or another
    run holds it). The unique constraint on (token, kind, offset_days) is
    the guard, so two concurrent runs cannot both claim the same offset.
    """
    db.add(
        AppointmentReminder(
            token=appointment.token,
            client_id=appointment.client_id,
            kind=kind.value,
            offset_days=offset_days,
        )
    )
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return False
    return True


def release_reminder(
    db: Session,
    token: str,
    kind: ReminderKind,
    offset_days: int,
) -> None:
    """Drop a claimed marker after a failed send so the next run retries it."""
    db.query(AppointmentReminder).filter(
        AppointmentReminder.token == token,
        AppointmentReminder.kind == kind.value,
        AppointmentReminder.offset_days == offset_days,
    ).delete(synchronize_session=False)
    db.commit()


# =============================================================================
# Guarded state transitions
# =============================================================================


def confirm_appointment(db: Session, client_id: uuid.UUID, token: str) -> bool:
    """
    Set the appointment to confirmed if the token is still current.

    Conditional UPDATE: the WHERE clause re-checks the token at the moment of
    the write. Returns False when no row matched (token replaced meanwhile,
    or already confirmed). Proposed fields are cleared since confirmed is
    not pending_change.
    """
    updated = (
        db.query(Appointment)
        .filter(
            Appointment.client_id == client_id,
            Appointment.token == token,
            Appointment.status != AppointmentStatus.CONFIRMED.value,
        )
        .update(
            {
                Appointment.status: AppointmentStatus.CONFIRMED.value,
                Appointment.proposed_date: None,
                Appointment.proposed_time: None,
                Appointment.updated_at: func.now(),
            },
            synchronize_session=False,
        )
    )
    db.commit()
    return updated == 1


def propose_new_date(
    db: Session,
    client_id: uuid.UUID,
    token: str,
    proposed_date: date,
    proposed_time: str,
) -> bool:
    """
    Record the client's proposal and move the appointment to pending_change.

    A second proposal overwrites the first. Returns False when the token is
    no longer current.
    """
    updated = (
        db.query(Appointment)
        .filter(
            Appointment.client_id == client_id,
            Appointment.token == token,
        )
        .update(
            {
                Appointment.status: AppointmentStatus.PENDING_CHANGE.value,
                Appointment.proposed_date: proposed_date,
                Appointment.proposed_time: proposed_time,
                Appointment.updated_at: func.now(),
            },
            synchronize_session=False,
        )
    )
    db.commit()
    return updated == 1
