"""Public appointment endpoints reached from email links (token auth, no login)."""

import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from consultdesk.core.config import settings
from consultdesk.core.deps import get_db, get_notifier
from consultdesk.core.exceptions import (
    AppointmentActionError,
    InternalError,
    StaleStateError,
    ValidationError,
)
from consultdesk.core.rate_limit import limiter
from consultdesk.core.structured_logging import build_log_context
from consultdesk.db.enums import AppointmentStatus
from consultdesk.schemas.appointment import ProposedChange
from consultdesk.services import (
    appointment_email_service,
    appointment_service,
    public_pages,
    token_service,
)
from consultdesk.services.notifier import Notifier
from consultdesk.utils.dates import local_today

logger = logging.getLogger(__name__)

router = APIRouter(tags=["appointments-public"])

PUBLIC_RATE_LIMIT = f"{settings.RATE_LIMIT_PUBLIC}/minute"


def _error_response(exc: AppointmentActionError) -> HTMLResponse:
    return HTMLResponse(
        content=public_pages.render_error_page(exc.title, exc.message, exc.tone),
        status_code=exc.status_code,
    )


def _handle_failure(
    exc: Exception, db: Session, request: Request, token: str | None
) -> HTMLResponse:
    """Map domain errors to their page; anything else becomes the generic 500 page."""
    context = build_log_context(
        token=token, route=request.url.path, method=request.method
    )
    if isinstance(exc, AppointmentActionError):
        logger.info("Public appointment action rejected: %s", exc.__class__.__name__, extra=context)
        return _error_response(exc)
    db.rollback()
    logger.exception("Public appointment action failed", extra=context)
    return _error_response(InternalError())


@router.get("/confirm", response_class=HTMLResponse)
@limiter.limit(PUBLIC_RATE_LIMIT)
async def confirm_appointment(
    request: Request,
    token: str | None = None,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
) -> HTMLResponse:
    """Confirm the appointment behind the link. Idempotent."""
    try:
        client, appointment = token_service.resolve_current(db, token)
        appointment_date = appointment.appointment_date
        appointment_time = appointment.appointment_time
        location = appointment.location

        if appointment.status == AppointmentStatus.CONFIRMED.value:
            return HTMLResponse(
                public_pages.render_confirmed_page(
                    appointment_date, appointment_time, location, already_confirmed=True
                )
            )

        if not appointment_service.confirm_appointment(db, client.id, token):
            # Lost a race: replaced or confirmed since we read it
            current = appointment_service.get_appointment_for_client(db, client.id)
            if (
                token_service.validate_current(token, current)
                and current.status == AppointmentStatus.CONFIRMED.value
            ):
                return HTMLResponse(
                    public_pages.render_confirmed_page(
                        current.appointment_date,
                        current.appointment_time,
                        current.location,
                        already_confirmed=True,
                    )
                )
            raise StaleStateError()

        logger.info(
            "Appointment confirmed for %s",
            appointment_date.isoformat(),
            extra=build_log_context(client_id=str(client.id), token=token),
        )
        await appointment_email_service.notify_consultant_confirmed(
            db, notifier, client, appointment_date, appointment_time, location
        )
        return HTMLResponse(
            public_pages.render_confirmed_page(appointment_date, appointment_time, location)
        )
    except Exception as exc:
        return _handle_failure(exc, db, request, token)


@router.get("/reschedule", response_class=HTMLResponse)
@limiter.limit(PUBLIC_RATE_LIMIT)
async def reschedule_form(
    request: Request,
    token: str | None = None,
    db: Session = Depends(get_db),
) -> HTMLResponse:
    """Show the date/time proposal form for the current appointment."""
    try:
        _, appointment = token_service.resolve_current(db, token)
        return HTMLResponse(
            public_pages.render_reschedule_form(
                token,
                appointment.appointment_date,
                appointment.appointment_time,
                appointment.location,
                today=local_today(),
            )
        )
    except Exception as exc:
        return _handle_failure(exc, db, request, token)


@router.post("/reschedule", response_class=HTMLResponse)
@limiter.limit(PUBLIC_RATE_LIMIT)
async def propose_new_date(
    request: Request,
    token: str | None = None,
    form_token: str | None = Form(None, alias="token"),
    proposed_date: str | None = Form(None, alias="proposedDate"),
    proposed_time: str | None = Form(None, alias="proposedTime"),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
) -> HTMLResponse:
    """
    Record the client's proposed date/time and notify the consultant.

    The token is read from the query string, or from the form body when the
    query has none. Validation failures leave the appointment untouched.
    """
    token = token or form_token
    try:
        client, appointment = token_service.resolve_current(db, token)

        if not proposed_date or not proposed_time:
            raise ValidationError("Please provide a date and a time.")
        try:
            proposal = ProposedChange(proposed_date=proposed_date, proposed_time=proposed_time)
        except PydanticValidationError:
            raise ValidationError("Please provide a valid date and a time in HH:MM format.")
        if proposal.proposed_date < local_today():
            raise ValidationError("The proposed date cannot be in the past.")

        current_date = appointment.appointment_date
        current_time = appointment.appointment_time

        if not appointment_service.propose_new_date(
            db, client.id, token, proposal.proposed_date, proposal.proposed_time
        ):
            raise StaleStateError()

        logger.info(
            "New date proposed: %s %s",
            proposal.proposed_date.isoformat(),
            proposal.proposed_time,
            extra=build_log_context(client_id=str(client.id), token=token),
        )
        await appointment_email_service.notify_consultant_reschedule(
            db,
            notifier,
            client,
            current_date,
            current_time,
            proposal.proposed_date,
            proposal.proposed_time,
        )
        return HTMLResponse(
            public_pages.render_proposal_sent_page(proposal.proposed_date, proposal.proposed_time)
        )
    except Exception as exc:
        return _handle_failure(exc, db, request, token)
