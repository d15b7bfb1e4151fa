"""SQLAlchemy ORM models for clients, appointments and their reminder markers."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from consultdesk.db.base import Base
from consultdesk.db.enums import DEFAULT_APPOINTMENT_STATUS, ClientStatus


class Client(Base):
    """
    A client company followed by a consultant.

    Owned by the client-management screens; read here for contact details,
    the assigned consultant and the active flag.
    """

    __tablename__ = "clients"
    __table_args__ = (Index("idx_clients_status", "status"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    owner_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    owner_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    assigned_consultant_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=ClientStatus.ACTIVE.value, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)

    # Relationships
    appointment: Mapped["Appointment | None"] = relationship(
        back_populates="client", uselist=False, cascade="all, delete-orphan"
    )


class Appointment(Base):
    """
    The single upcoming appointment of a client.

    The token identifies this appointment instance: replacing the appointment
    swaps the token, which also leaves the previous reminder markers behind.
    proposed_date/proposed_time are set only while status is pending_change.
    """

    __tablename__ = "appointments"
    __table_args__ = (
        UniqueConstraint("client_id", name="uq_appointment_client"),
        UniqueConstraint("token", name="uq_appointment_token"),
        Index("idx_appointments_date", "appointment_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False
    )

    appointment_date: Mapped[date] = mapped_column(Date, nullable=False)
    appointment_time: Mapped[str] = mapped_column(String(5), nullable=False)  # HH:MM local
    location: Mapped[str | None] = mapped_column(String(500), nullable=True)

    status: Mapped[str] = mapped_column(
        String(20), default=DEFAULT_APPOINTMENT_STATUS.value, nullable=False
    )
    token: Mapped[str] = mapped_column(String(64), nullable=False)

    # Client proposal awaiting consultant resolution
    proposed_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    proposed_time: Mapped[str | None] = mapped_column(String(5), nullable=True)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    client: Mapped["Client"] = relationship(back_populates="appointment")


class AppointmentToken(Base):
    """
    Every token ever minted, mapped to its client.

    Kept after the appointment is replaced so an old link can be told apart
    from an unknown one.
    """

    __tablename__ = "appointment_tokens"
    __table_args__ = (Index("idx_appointment_tokens_client", "client_id"),)

    token: Mapped[str] = mapped_column(String(64), primary_key=True)
    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)


class AppointmentReminder(Base):
    """
    Idempotency marker for a sent reminder.

    One row per (appointment token, kind, offset). The unique constraint makes
    the insert an atomic add-to-set: a second writer gets an IntegrityError.
    """

    __tablename__ = "appointment_reminders"
    __table_args__ = (
        UniqueConstraint("token", "kind", "offset_days", name="uq_appointment_reminder"),
        Index("idx_appointment_reminders_client", "client_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    token: Mapped[str] = mapped_column(
        String(64), ForeignKey("appointment_tokens.token", ondelete="CASCADE"), nullable=False
    )
    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False
    )
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    offset_days: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)


class MonthlySubmission(Base):
    """
    Monthly dashboard entry status (written by the entry forms, read-only here).

    month is the English month name, e.g. "March".
    """

    __tablename__ = "monthly_submissions"
    __table_args__ = (
        UniqueConstraint("client_id", "year", "month", name="uq_monthly_submission"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[str] = mapped_column(String(20), nullable=False)
    is_submitted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )


class NotificationLog(Base):
    """
    Log of emails attempted by the service.

    Tracks: dashboard reminders, consultant escalations, confirmations,
    reschedule requests.
    """

    __tablename__ = "notification_logs"
    __table_args__ = (
        Index("idx_notification_logs_client", "client_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("clients.id", ondelete="SET NULL"), nullable=True
    )

    notification_type: Mapped[str] = mapped_column(String(40), nullable=False)
    recipient_email: Mapped[str] = mapped_column(String(320), nullable=False)
    subject: Mapped[str] = mapped_column(String(255), nullable=False)

    status: Mapped[str] = mapped_column(String(20), nullable=False)  # sent, failed
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    external_message_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
