"""Domain errors for public appointment actions and email delivery.

Each action error carries the HTTP status and the user-facing copy of the page
rendered for it. Detail that must not reach the client goes to the logs only.
"""


class AppointmentActionError(Exception):
    """Base exception for token-based appointment actions."""

    status_code = 500
    title = "Error"
    tone = "error"
    message = "Something went wrong. Please try again or contact your consultant."

    def __init__(self, message: str | None = None):
        if message:
            self.message = message
        super().__init__(self.message)


class ValidationError(AppointmentActionError):
    """Missing token or invalid form fields."""

    status_code = 400
    title = "Invalid request"
    message = "Invalid link. No token was provided."


class NotFoundError(AppointmentActionError):
    """Token does not resolve to any client."""

    status_code = 404
    title = "Link expired"
    message = "This link is no longer valid. Please contact your consultant."


class StaleStateError(AppointmentActionError):
    """Token resolves, but the appointment was replaced since the email was sent."""

    status_code = 400
    title = "Appointment changed"
    tone = "warning"
    message = "This appointment has changed. Please check your latest email."


class InternalError(AppointmentActionError):
    """Anything unexpected. Rendered generically."""

    status_code = 500


class TransportError(Exception):
    """Email transport failure (connection, auth, timeout, provider rejection)."""

    pass
