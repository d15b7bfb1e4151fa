"""Enum definitions for application constants."""

from enum import Enum


class ClientStatus(str, Enum):
    """Only active clients are evaluated by the reminder run."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class AppointmentStatus(str, Enum):
    """
    Appointment lifecycle status.

    Flow: scheduled → confirmed
              ↘ pending_change → (consultant) scheduled | confirmed
          confirmed → pending_change
    Replacing the appointment always starts over at scheduled.
    """

    SCHEDULED = "scheduled"  # Created by the consultant, not yet answered
    CONFIRMED = "confirmed"  # Client clicked the confirm link
    PENDING_CHANGE = "pending_change"  # Client proposed another date


class ReminderSeverity(str, Enum):
    """Tone of the client reminder, from the number of days left."""

    GENTLE = "gentle"
    MODERATE = "moderate"
    FIRM = "firm"
    URGENT = "urgent"


class ReminderKind(str, Enum):
    """Which marker a row in appointment_reminders represents."""

    CLIENT = "client"  # Client reminder for one offset
    ESCALATION = "escalation"  # Consultant escalation for one day


class NotificationType(str, Enum):
    """Types of emails sent by the service."""

    DASHBOARD_REMINDER = "dashboard_reminder"
    CONSULTANT_ESCALATION = "consultant_escalation"
    APPOINTMENT_CONFIRMED = "appointment_confirmed"
    RESCHEDULE_REQUESTED = "reschedule_requested"


class NotificationStatus(str, Enum):
    SENT = "sent"
    FAILED = "failed"


DEFAULT_APPOINTMENT_STATUS = AppointmentStatus.SCHEDULED
