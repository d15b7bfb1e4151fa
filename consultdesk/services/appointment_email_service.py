"""Appointment email templates and send helpers.

Client reminders come in four tones (gentle, moderate, firm, urgent). The
consultant gets fixed templates for escalations, confirmations and reschedule
requests. Templates use {{variable}} placeholders rendered by
email_service.render_template.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from urllib.parse import urlencode

from sqlalchemy.orm import Session

from consultdesk.core.config import settings
from consultdesk.db.enums import NotificationType, ReminderSeverity
from consultdesk.db.models import Appointment, Client
from consultdesk.services.email_service import render_template
from consultdesk.services.notifier import Notifier, SendResult
from consultdesk.utils.dates import format_long_date

LOCATION_FALLBACK = "Location to be confirmed"
CLIENT_NAME_FALLBACK = "Sir or Madam"
CONSULTANT_CLIENT_FALLBACK = "The client"


@dataclass(frozen=True)
class ReminderLevel:
    color: str
    subject: str
    title: str
    intro: str
    cta: str


REMINDER_LEVELS: dict[ReminderSeverity, ReminderLevel] = {
    ReminderSeverity.GENTLE: ReminderLevel(
        color="#3b82f6",
        subject="[{{brand_name}}] Your {{month_name}} dashboard is ready to fill in",
        title="Your dashboard is ready",
        intro=(
            "The <strong>{{month_name}} {{year}}</strong> figures for "
            "<strong>{{company_name}}</strong> are ready to be entered."
        ),
        cta="You can complete your monthly entry right now.",
    ),
    ReminderSeverity.MODERATE: ReminderLevel(
        color="#f59e0b",
        subject="[{{brand_name}}] Remember to fill in your {{month_name}} dashboard",
        title="Remember your monthly entry",
        intro=(
            "Your appointment is getting closer. Remember to enter the "
            "<strong>{{month_name}} {{year}}</strong> figures for "
            "<strong>{{company_name}}</strong>."
        ),
        cta="Complete your entry so we can prepare your analysis.",
    ),
    ReminderSeverity.FIRM: ReminderLevel(
        color="#f97316",
        subject="[{{brand_name}}] ⏰ Your appointment is coming up: {{month_name}} entry pending",
        title="Your appointment is coming up",
        intro=(
            "There are <strong>{{days_until}} days</strong> left before your appointment. "
            "The <strong>{{month_name}} {{year}}</strong> entry for "
            "<strong>{{company_name}}</strong> has not been made yet."
        ),
        cta="Please complete your entry as soon as possible.",
    ),
    ReminderSeverity.URGENT: ReminderLevel(
        color="#dc2626",
        subject="[{{brand_name}}] ⚠️ Appointment tomorrow: {{month_name}} entry required",
        title="Appointment tomorrow: entry required",
        intro=(
            "Your appointment is <strong>tomorrow</strong>. The "
            "<strong>{{month_name}} {{year}}</strong> entry for "
            "<strong>{{company_name}}</strong> has not been made yet."
        ),
        cta=(
            "Please complete your entry today so your consultant can prepare "
            "the analysis."
        ),
    ),
}

REMINDER_BODY_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head><meta charset="UTF-8"></head>
<body style="font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; background-color: #f8fafc; padding: 20px; margin: 0;">
  <div style="max-width: 600px; margin: 0 auto; background: white; border-radius: 12px; overflow: hidden;">
    <div style="background: linear-gradient(135deg, #1e40af, #3b82f6); padding: 30px; text-align: center;">
      <h1 style="color: white; margin: 0; font-size: 22px;">{{brand_name}}</h1>
      <p style="color: #bfdbfe; margin: 8px 0 0; font-size: 14px;">Monthly entry reminder</p>
    </div>
    <div style="padding: 30px;">
      <p style="color: #334155; font-size: 16px; line-height: 1.6;">Hello <strong>{{client_name}}</strong>,</p>
      <div style="background: {{color}}15; border-left: 4px solid {{color}}; border-radius: 8px; padding: 16px; margin: 20px 0;">
        <h2 style="color: {{color}}; margin: 0 0 8px; font-size: 17px;">{{title}}</h2>
        <p style="color: #475569; font-size: 14px; line-height: 1.6; margin: 0;">{{intro}}</p>
      </div>
      <div style="background: #f0f9ff; border-radius: 8px; padding: 16px; margin: 20px 0;">
        <p style="margin: 0; color: #1e293b; font-size: 14px;">
          <strong>📅 Next appointment:</strong> {{appointment_date}} at {{appointment_time}}<br/>
          📍 {{location}}
        </p>
      </div>
      <p style="color: #475569; font-size: 15px; line-height: 1.6;">{{cta}}</p>
      <p style="font-size: 14px;">
        <a href="{{confirm_url}}" style="color: #16a34a;">Confirm this appointment</a>
        &nbsp;|&nbsp;
        <a href="{{reschedule_url}}" style="color: #1e40af;">Propose another date</a>
      </p>
      <p style="color: #94a3b8; font-size: 13px; margin-top: 24px;">
        Log in to your {{brand_name}} space to complete your entry.
      </p>
    </div>
    <div style="background: #f1f5f9; padding: 16px; text-align: center;">
      <p style="color: #94a3b8; font-size: 12px; margin: 0;">{{brand_name}}</p>
    </div>
  </div>
</body>
</html>"""

ESCALATION_SUBJECT = (
    "[{{brand_name}}] ⚠️ Entry not submitted: {{company_name}}, appointment {{when}}"
)
ESCALATION_BODY = """<p><strong>{{company_name}}</strong> has still not entered its <strong>{{month_name}} {{year}}</strong> dashboard.</p>
<p>The appointment is scheduled for <strong>{{appointment_date}} at {{appointment_time}}</strong> ({{when}}).</p>
<p>Contact: {{client_name}} &lt;{{client_email}}&gt;</p>"""

CONFIRMED_SUBJECT = "[{{brand_name}}] Appointment confirmed: {{company_name}}"
CONFIRMED_BODY = """<p><strong>{{client_name}}</strong> ({{company_name}}) confirmed the appointment on <strong>{{appointment_date}} at {{appointment_time}}</strong>.</p>
<p>📍 {{location}}</p>"""

RESCHEDULE_SUBJECT = "[{{brand_name}}] Appointment change request: {{company_name}}"
RESCHEDULE_BODY = """<p><strong>{{client_name}}</strong> ({{company_name}}) would like to move their appointment.</p>
<p><strong>Current date:</strong> {{current_date}} at {{current_time}}</p>
<p><strong>Proposed date:</strong> {{proposed_date}} at {{proposed_time}}</p>
<p>Log in to the application to accept or suggest an alternative.</p>"""


def consultant_email_for(client: Client) -> str:
    return client.assigned_consultant_email or settings.DEFAULT_CONSULTANT_EMAIL


def build_action_links(token: str) -> tuple[str, str]:
    """Public confirm and reschedule URLs carrying the appointment token."""
    base = settings.PUBLIC_BASE_URL.rstrip("/")
    query = urlencode({"token": token})
    return f"{base}/confirm?{query}", f"{base}/reschedule?{query}"


def _base_variables(client: Client) -> dict[str, str]:
    return {
        "brand_name": settings.BRAND_NAME,
        "company_name": client.company_name,
        "client_email": client.owner_email or "",
    }


def build_reminder_email(
    client: Client,
    appointment: Appointment,
    severity: ReminderSeverity,
    days_until: int,
    year: int,
    month_name: str,
) -> tuple[str, str]:
    """Render the client reminder for one severity level."""
    level = REMINDER_LEVELS[severity]
    confirm_url, reschedule_url = build_action_links(appointment.token)
    variables = {
        **_base_variables(client),
        "client_name": client.owner_name or CLIENT_NAME_FALLBACK,
        "month_name": month_name,
        "year": str(year),
        "days_until": str(days_until),
        "appointment_date": format_long_date(appointment.appointment_date),
        "appointment_time": appointment.appointment_time,
        "location": appointment.location or LOCATION_FALLBACK,
        "color": level.color,
        "title": level.title,
        "cta": level.cta,
        "confirm_url": confirm_url,
        "reschedule_url": reschedule_url,
    }
    _, intro_html = render_template("", level.intro, variables)
    return render_template(
        level.subject,
        REMINDER_BODY_TEMPLATE,
        variables,
        html_variables={"intro": intro_html},
    )


def build_escalation_email(
    client: Client,
    appointment: Appointment,
    days_until: int,
    year: int,
    month_name: str,
) -> tuple[str, str]:
    variables = {
        **_base_variables(client),
        "client_name": client.owner_name or CONSULTANT_CLIENT_FALLBACK,
        "month_name": month_name,
        "year": str(year),
        "appointment_date": format_long_date(appointment.appointment_date),
        "appointment_time": appointment.appointment_time,
        "when": "today" if days_until <= 0 else "tomorrow",
    }
    return render_template(ESCALATION_SUBJECT, ESCALATION_BODY, variables)


def build_confirmed_email(
    client: Client,
    appointment_date: date,
    appointment_time: str,
    location: str | None,
) -> tuple[str, str]:
    variables = {
        **_base_variables(client),
        "client_name": client.owner_name or CONSULTANT_CLIENT_FALLBACK,
        "appointment_date": format_long_date(appointment_date),
        "appointment_time": appointment_time,
        "location": location or LOCATION_FALLBACK,
    }
    return render_template(CONFIRMED_SUBJECT, CONFIRMED_BODY, variables)


def build_reschedule_email(
    client: Client,
    current_date: date,
    current_time: str,
    proposed_date: date,
    proposed_time: str,
) -> tuple[str, str]:
    variables = {
        **_base_variables(client),
        "client_name": client.owner_name or CONSULTANT_CLIENT_FALLBACK,
        "current_date": format_long_date(current_date),
        "current_time": current_time,
        "proposed_date": format_long_date(proposed_date),
        "proposed_time": proposed_time,
    }
    return render_template(RESCHEDULE_SUBJECT, RESCHEDULE_BODY, variables)


# =============================================================================
# Send helpers
# =============================================================================


async def send_dashboard_reminder(
    db: Session,
    notifier: Notifier,
    client: Client,
    appointment: Appointment,
    severity: ReminderSeverity,
    days_until: int,
    year: int,
    month_name: str,
) -> SendResult:
    subject, body = build_reminder_email(
        client, appointment, severity, days_until, year, month_name
    )
    return await notifier.send(
        client.owner_email,
        subject,
        body,
        db=db,
        notification_type=NotificationType.DASHBOARD_REMINDER,
        client_id=client.id,
    )


async def send_consultant_escalation(
    db: Session,
    notifier: Notifier,
    client: Client,
    appointment: Appointment,
    days_until: int,
    year: int,
    month_name: str,
) -> SendResult:
    subject, body = build_escalation_email(client, appointment, days_until, year, month_name)
    return await notifier.send(
        consultant_email_for(client),
        subject,
        body,
        db=db,
        notification_type=NotificationType.CONSULTANT_ESCALATION,
        client_id=client.id,
    )


async def notify_consultant_confirmed(
    db: Session,
    notifier: Notifier,
    client: Client,
    appointment_date: date,
    appointment_time: str,
    location: str | None,
) -> SendResult:
    subject, body = build_confirmed_email(client, appointment_date, appointment_time, location)
    return await notifier.send(
        consultant_email_for(client),
        subject,
        body,
        db=db,
        notification_type=NotificationType.APPOINTMENT_CONFIRMED,
        client_id=client.id,
    )


async def notify_consultant_reschedule(
    db: Session,
    notifier: Notifier,
    client: Client,
    current_date: date,
    current_time: str,
    proposed_date: date,
    proposed_time: str,
) -> SendResult:
    subject, body = build_reschedule_email(
        client, current_date, current_time, proposed_date, proposed_time
    )
    return await notifier.send(
        consultant_email_for(client),
        subject,
        body,
        db=db,
        notification_type=NotificationType.RESCHEDULE_REQUESTED,
        client_id=client.id,
    )
