"""Daily dashboard reminder run.

For each active client: skip when there is nothing to remind about, ask the
reminder policy what to send, claim the marker, send, and release the marker
if the send failed. A failure on one client never stops the batch.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date

from sqlalchemy.orm import Session

from consultdesk.core.structured_logging import build_log_context
from consultdesk.db.enums import AppointmentStatus, ReminderKind
from consultdesk.db.models import Client
from consultdesk.services import (
    appointment_email_service,
    appointment_service,
    reminder_policy,
    submission_service,
)
from consultdesk.services.notifier import Notifier
from consultdesk.utils.dates import days_between, local_today

logger = logging.getLogger(__name__)

OUTCOME_SENT = "sent"
OUTCOME_SKIPPED = "skipped"
OUTCOME_FAILED = "failed"
OUTCOME_IDLE = "idle"  # evaluated, nothing due today


@dataclass
class ClientOutcome:
    client_id: uuid.UUID
    status: str
    reason: str | None = None
    days_until: int | None = None
    offset: int | None = None
    severity: str | None = None
    reminder_sent: bool = False
    escalation_sent: bool = False
    errors: list[str] = field(default_factory=list)


@dataclass
class RunSummary:
    run_date: date
    target_year: int
    target_month: str
    clients_checked: int = 0
    reminders_sent: int = 0
    escalations_sent: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[dict] = field(default_factory=list)

    def add(self, outcome: ClientOutcome) -> None:
        self.clients_checked += 1
        if outcome.reminder_sent:
            self.reminders_sent += 1
        if outcome.escalation_sent:
            self.escalations_sent += 1
        if outcome.status == OUTCOME_SKIPPED:
            self.skipped += 1
        elif outcome.status == OUTCOME_FAILED:
            self.failed += 1
            for error in outcome.errors:
                self.errors.append({"client_id": str(outcome.client_id), "error": error})

    def to_dict(self) -> dict:
        return {
            "run_date": self.run_date.isoformat(),
            "target_year": self.target_year,
            "target_month": self.target_month,
            "clients_checked": self.clients_checked,
            "reminders_sent": self.reminders_sent,
            "escalations_sent": self.escalations_sent,
            "skipped": self.skipped,
            "failed": self.failed,
            "errors": self.errors,
        }


async def evaluate_client(
    db: Session,
    notifier: Notifier,
    client: Client,
    run_date: date,
) -> ClientOutcome:
    """Evaluate and act on one client for the given run date."""
    client_id = client.id
    appointment = client.appointment

    if appointment is None:
        return ClientOutcome(client_id, OUTCOME_SKIPPED, reason="no_appointment")
    if appointment.status == AppointmentStatus.PENDING_CHANGE.value:
        return ClientOutcome(client_id, OUTCOME_SKIPPED, reason="pending_change")

    days_until = days_between(run_date, appointment.appointment_date)
    if days_until < 0:
        return ClientOutcome(client_id, OUTCOME_SKIPPED, reason="past", days_until=days_until)

    year, month_name = reminder_policy.target_month(run_date)
    if submission_service.is_submitted(db, client_id, year, month_name):
        return ClientOutcome(client_id, OUTCOME_SKIPPED, reason="submitted", days_until=days_until)

    token = appointment.token
    decision = reminder_policy.decide_reminder(
        days_until,
        already_submitted=False,
        reminders_sent=appointment_service.reminders_sent(db, token),
    )
    outcome = ClientOutcome(client_id, OUTCOME_IDLE, days_until=days_until)
    log_context = build_log_context(
        client_id=str(client_id), token=token, run_date=run_date.isoformat()
    )

    if decision.send_client_reminder:
        outcome.offset = decision.offset
        outcome.severity = decision.severity.value
        if not client.owner_email:
            logger.warning("Client without owner email, reminder skipped", extra=log_context)
            outcome.reason = "no_owner_email"
        elif appointment_service.claim_reminder(
            db, appointment, ReminderKind.CLIENT, decision.offset
        ):
            result = await appointment_email_service.send_dashboard_reminder(
                db,
                notifier,
                client,
                appointment,
                decision.severity,
                days_until,
                year,
                month_name,
            )
            if result.success:
                outcome.reminder_sent = True
            else:
                appointment_service.release_reminder(
                    db, token, ReminderKind.CLIENT, decision.offset
                )
                outcome.errors.append(f"reminder: {result.error}")
        else:
            logger.info("Reminder J-%s already claimed", decision.offset, extra=log_context)

    if decision.escalate_to_consultant:
        if appointment_service.claim_reminder(db, appointment, ReminderKind.ESCALATION, days_until):
            result = await appointment_email_service.send_consultant_escalation(
                db, notifier, client, appointment, days_until, year, month_name
            )
            if result.success:
                outcome.escalation_sent = True
            else:
                appointment_service.release_reminder(
                    db, token, ReminderKind.ESCALATION, days_until
                )
                outcome.errors.append(f"escalation: {result.error}")

    if outcome.errors:
        outcome.status = OUTCOME_FAILED
    elif outcome.reminder_sent or outcome.escalation_sent:
        outcome.status = OUTCOME_SENT
    elif outcome.reason == "no_owner_email":
        outcome.status = OUTCOME_SKIPPED
    return outcome


async def process_dashboard_reminders(
    db: Session,
    notifier: Notifier,
    run_date: date | None = None,
) -> dict:
    """
    Run the daily reminder batch over all active clients.

    run_date defaults to today in REMINDER_TIMEZONE. Safe to re-run on the
    same day: markers already recorded are not sent again.
    """
    run_date = run_date or local_today()
    year, month_name = reminder_policy.target_month(run_date)
    summary = RunSummary(run_date=run_date, target_year=year, target_month=month_name)

    logger.info(
        "Running dashboard reminders for %s %s",
        month_name,
        year,
        extra=build_log_context(run_date=run_date.isoformat()),
    )

    for client in appointment_service.list_active_clients(db):
        client_id = client.id
        try:
            outcome = await evaluate_client(db, notifier, client, run_date)
        except Exception as exc:
            db.rollback()
            logger.exception(
                "Reminder evaluation failed",
                extra=build_log_context(client_id=str(client_id), run_date=run_date.isoformat()),
            )
            outcome = ClientOutcome(
                client_id, OUTCOME_FAILED, errors=[f"{exc.__class__.__name__}: {exc}"]
            )
        summary.add(outcome)

    logger.info(
        "Reminders complete: checked=%s sent=%s escalations=%s skipped=%s failed=%s",
        summary.clients_checked,
        summary.reminders_sent,
        summary.escalations_sent,
        summary.skipped,
        summary.failed,
    )
    return summary.to_dict()
