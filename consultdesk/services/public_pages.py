"""HTML pages returned by the public confirm/reschedule links."""

from __future__ import annotations

import html
from datetime import date, timedelta

from consultdesk.core.config import settings
from consultdesk.services.appointment_email_service import LOCATION_FALLBACK
from consultdesk.utils.dates import format_long_date

DEFAULT_PROPOSED_TIME = "09:00"

TONE_ICONS = {
    "success": "✅",
    "error": "❌",
    "warning": "⚠️",
}

_PAGE_SHELL = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title} | {brand}</title>
</head>
<body style="font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; background-color: #f8fafc; padding: 20px; margin: 0; display: flex; justify-content: center; align-items: center; min-height: 100vh;">
  <div style="max-width: 500px; width: 100%; background: white; border-radius: 16px; overflow: hidden; box-shadow: 0 10px 25px rgba(0,0,0,0.1);">
    <div style="background: linear-gradient(135deg, #1e40af, #3b82f6); padding: 24px; text-align: center;">
      <h2 style="color: white; margin: 0; font-size: 18px;">{brand}</h2>{subtitle}
    </div>
{content}
    <div style="background: #f1f5f9; padding: 16px; text-align: center;">
      <p style="color: #94a3b8; font-size: 12px; margin: 0;">{footer}</p>
    </div>
  </div>
</body>
</html>"""


def _shell(title: str, content: str, footer: str, subtitle: str = "") -> str:
    if subtitle:
        subtitle = (
            '\n      <p style="color: #bfdbfe; margin: 8px 0 0; font-size: 13px;">'
            f"{html.escape(subtitle)}</p>"
        )
    return _PAGE_SHELL.format(
        title=html.escape(title),
        brand=html.escape(settings.BRAND_NAME),
        subtitle=subtitle,
        content=content,
        footer=html.escape(footer),
    )


def render_result_page(title: str, message_html: str, tone: str = "success") -> str:
    """
    Centered card with an icon, a title and a message.

    message_html is inserted as-is; callers escape any user data in it.
    """
    icon = TONE_ICONS.get(tone, TONE_ICONS["error"])
    content = f"""    <div style="padding: 40px 30px; text-align: center;">
      <div style="font-size: 48px; margin-bottom: 16px;">{icon}</div>
      <h1 style="color: #1e293b; font-size: 24px; margin: 0 0 16px;">{html.escape(title)}</h1>
      <p style="color: #475569; font-size: 15px; line-height: 1.8;">{message_html}</p>
    </div>"""
    return _shell(title, content, "You can close this page.")


def render_error_page(title: str, message: str, tone: str = "error") -> str:
    return render_result_page(title, html.escape(message), tone)


def render_confirmed_page(
    appointment_date: date,
    appointment_time: str,
    location: str | None,
    already_confirmed: bool = False,
) -> str:
    when = (
        f"<strong>{html.escape(format_long_date(appointment_date))} at "
        f"{html.escape(appointment_time)}</strong>"
    )
    if already_confirmed:
        return render_result_page(
            "Already confirmed!",
            f"Your appointment on {when} is confirmed.<br/>"
            "Remember to fill in your dashboard beforehand.",
        )
    return render_result_page(
        "Appointment confirmed!",
        f"Your appointment on {when} is confirmed.<br/><br/>"
        f"📍 {html.escape(location or LOCATION_FALLBACK)}<br/><br/>"
        "Remember to fill in your dashboard before the appointment.",
    )


def render_proposal_sent_page(proposed_date: date, proposed_time: str) -> str:
    return render_result_page(
        "Proposal sent!",
        "Your consultant has been told you would like to meet on "
        f"<strong>{html.escape(format_long_date(proposed_date))} at "
        f"{html.escape(proposed_time)}</strong>.<br/><br/>"
        "They will get back to you to confirm.",
    )


def render_reschedule_form(
    token: str,
    appointment_date: date,
    appointment_time: str,
    location: str | None,
    today: date,
) -> str:
    """Date/time form; the earliest selectable date is the day after today."""
    min_date = (today + timedelta(days=1)).isoformat()
    content = f"""    <div style="padding: 24px 30px 0;">
      <div style="background: #fef3c7; border-left: 4px solid #f59e0b; border-radius: 8px; padding: 16px;">
        <p style="margin: 0; color: #92400e; font-size: 14px;">
          <strong>Current appointment:</strong> {html.escape(format_long_date(appointment_date))} at {html.escape(appointment_time)}<br/>
          📍 {html.escape(location or LOCATION_FALLBACK)}
        </p>
      </div>
    </div>
    <form method="POST" style="padding: 24px 30px 30px;">
      <input type="hidden" name="token" value="{html.escape(token, quote=True)}" />
      <div style="margin-bottom: 20px;">
        <label for="proposedDate" style="display: block; color: #334155; font-size: 14px; font-weight: 600; margin-bottom: 8px;">Preferred date</label>
        <input type="date" id="proposedDate" name="proposedDate" min="{min_date}" required
          style="width: 100%; padding: 12px; border: 2px solid #e2e8f0; border-radius: 8px; font-size: 15px; box-sizing: border-box;" />
      </div>
      <div style="margin-bottom: 24px;">
        <label for="proposedTime" style="display: block; color: #334155; font-size: 14px; font-weight: 600; margin-bottom: 8px;">Preferred time</label>
        <input type="time" id="proposedTime" name="proposedTime" value="{DEFAULT_PROPOSED_TIME}" required
          style="width: 100%; padding: 12px; border: 2px solid #e2e8f0; border-radius: 8px; font-size: 15px; box-sizing: border-box;" />
      </div>
      <button type="submit"
        style="width: 100%; background: linear-gradient(135deg, #1e40af, #3b82f6); color: white; border: none; padding: 14px; border-radius: 8px; font-size: 16px; font-weight: 600; cursor: pointer;">
        Send my proposal
      </button>
    </form>"""
    return _shell(
        "Propose another date",
        content,
        "Your consultant will be notified and get back to you.",
        subtitle="Propose another date",
    )
