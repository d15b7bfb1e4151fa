"""Reminder decision rules.

Pure functions: no database, no clock, no I/O. The scheduler feeds in the
numbers it computed and acts on the returned decision.
"""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass
from datetime import date

from consultdesk.db.enums import ReminderSeverity
from consultdesk.utils.dates import previous_month

# Days before the appointment on which the client is reminded
REMINDER_OFFSETS: tuple[int, ...] = (20, 14, 7, 3, 1)

# At or below this many days the consultant is escalated to as well
ESCALATION_THRESHOLD_DAYS = 1


@dataclass(frozen=True)
class ReminderDecision:
    send_client_reminder: bool
    offset: int | None
    severity: ReminderSeverity | None
    escalate_to_consultant: bool


def severity_for(days_until: int) -> ReminderSeverity:
    """Map days left to reminder tone (>14 gentle, >7 moderate, >1 firm, else urgent)."""
    if days_until > 14:
        return ReminderSeverity.GENTLE
    if days_until > 7:
        return ReminderSeverity.MODERATE
    if days_until > 1:
        return ReminderSeverity.FIRM
    return ReminderSeverity.URGENT


def should_escalate(days_until: int, already_submitted: bool) -> bool:
    """Consultant escalation applies on the last day and the day itself."""
    return not already_submitted and 0 <= days_until <= ESCALATION_THRESHOLD_DAYS


def decide_reminder(
    days_until: int,
    already_submitted: bool,
    reminders_sent: Collection[int],
) -> ReminderDecision:
    """
    Decide what the daily run should send for one appointment.

    A client reminder fires only when days_until is exactly one of
    REMINDER_OFFSETS, that offset has not been sent for this appointment,
    and the month's data is still missing. Escalation is evaluated on its
    own and does not depend on the offset gate.
    """
    send = (
        not already_submitted
        and days_until in REMINDER_OFFSETS
        and days_until not in reminders_sent
    )
    return ReminderDecision(
        send_client_reminder=send,
        offset=days_until if send else None,
        severity=severity_for(days_until) if send else None,
        escalate_to_consultant=should_escalate(days_until, already_submitted),
    )


def target_month(run_date: date) -> tuple[int, str]:
    """Reminders always chase the calendar month preceding the run date."""
    return previous_month(run_date)
