"""Appointment schemas - Pydantic models for the public form and the reminder run."""

from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

from consultdesk.utils.dates import ISO_DATE_PATTERN, TIME_PATTERN


# =============================================================================
# Public reschedule form
# =============================================================================

class ProposedChange(BaseModel):
    """Client proposal posted from the reschedule form."""
    proposed_date: date
    proposed_time: str = Field(..., pattern=TIME_PATTERN.pattern)

    @field_validator("proposed_date", mode="before")
    @classmethod
    def parse_iso_date(cls, value):
        # YYYY-MM-DD only, no timestamps or datetime strings
        if isinstance(value, date) and not isinstance(value, datetime):
            return value
        if not isinstance(value, str) or not ISO_DATE_PATTERN.match(value):
            raise ValueError("proposed_date must be YYYY-MM-DD")
        return date.fromisoformat(value)


# =============================================================================
# Reminder run
# =============================================================================

class ReminderRunError(BaseModel):
    client_id: str
    error: str


class ReminderRunResponse(BaseModel):
    """Summary returned by the daily reminder run."""
    run_date: date
    target_year: int
    target_month: str
    clients_checked: int
    reminders_sent: int
    escalations_sent: int
    skipped: int
    failed: int
    errors: list[ReminderRunError] = []
