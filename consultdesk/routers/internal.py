"""
Internal endpoints for scheduled/cron operations.

Protected by X-Internal-Secret header.
Call from external cron once a day (REMINDER_CRON in REMINDER_TIMEZONE).
"""
from datetime import date

from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy.orm import Session

from consultdesk.core.config import settings
from consultdesk.core.deps import get_db, get_notifier
from consultdesk.schemas.appointment import ReminderRunResponse
from consultdesk.services import reminder_service
from consultdesk.services.notifier import Notifier


router = APIRouter(prefix="/internal/scheduled", tags=["internal"])


def verify_internal_secret(x_internal_secret: str = Header(...)):
    """Verify the internal secret header."""
    expected = settings.INTERNAL_SECRET
    if not expected:
        raise HTTPException(status_code=501, detail="INTERNAL_SECRET not configured")
    if x_internal_secret != expected:
        raise HTTPException(status_code=403, detail="Invalid internal secret")


@router.post("/dashboard-reminders", response_model=ReminderRunResponse)
async def run_dashboard_reminders(
    run_date: date | None = None,
    x_internal_secret: str = Header(...),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Daily dashboard reminder run.

    Sends the J-20/J-14/J-7/J-3/J-1 client reminders for the previous month's
    entry and escalates to the consultant on the last day. run_date overrides
    today's date (catch-up runs); re-running the same day sends nothing twice.
    """
    verify_internal_secret(x_internal_secret)
    return await reminder_service.process_dashboard_reminders(db, notifier, run_date)
