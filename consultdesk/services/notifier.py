"""Notifier: sends one transactional email and reports the outcome.

Never raises for delivery problems. Callers get a SendResult and decide what
a failure means for them (the reminder run leaves the offset unmarked, the
public handlers still answer 200).
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from consultdesk.core.exceptions import TransportError
from consultdesk.db.enums import NotificationStatus, NotificationType
from consultdesk.db.models import NotificationLog
from consultdesk.services.email_transport import EmailMessage, EmailTransport

logger = logging.getLogger(__name__)


@dataclass
class SendResult:
    success: bool
    recipient: str
    error: str | None = None
    message_id: str | None = None


class Notifier:
    def __init__(self, transport: EmailTransport):
        self.transport = transport

    async def send(
        self,
        to: str,
        subject: str,
        html: str,
        *,
        db: Session | None = None,
        notification_type: NotificationType | None = None,
        client_id: uuid.UUID | None = None,
    ) -> SendResult:
        """
        Send one email through the configured transport.

        When db and notification_type are given the attempt is written to
        notification_logs whatever the outcome.
        """
        message = EmailMessage(to=to, subject=subject, html=html)
        try:
            message_id = await self.transport.send(message)
            result = SendResult(success=True, recipient=to, message_id=message_id)
            logger.info(
                "Email sent via %s to %s (%s)",
                self.transport.name,
                to,
                notification_type.value if notification_type else "email",
            )
        except TransportError as exc:
            result = SendResult(success=False, recipient=to, error=str(exc))
            logger.warning("Email to %s failed: %s", to, exc)
        except Exception as exc:
            result = SendResult(
                success=False, recipient=to, error=f"{exc.__class__.__name__}: {exc}"
            )
            logger.exception("Unexpected error sending email to %s", to)

        if db is not None and notification_type is not None:
            _record_attempt(db, result, subject, notification_type, client_id)
        return result


def _record_attempt(
    db: Session,
    result: SendResult,
    subject: str,
    notification_type: NotificationType,
    client_id: uuid.UUID | None,
) -> None:
    status = NotificationStatus.SENT if result.success else NotificationStatus.FAILED
    db.add(
        NotificationLog(
            client_id=client_id,
            notification_type=notification_type.value,
            recipient_email=result.recipient,
            subject=subject[:255],
            status=status.value,
            error=result.error,
            external_message_id=result.message_id,
        )
    )
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to record notification log for %s", result.recipient)
