"""Read-only lookup of monthly dashboard submissions."""

import uuid

from sqlalchemy.orm import Session

from consultdesk.db.models import MonthlySubmission


def is_submitted(db: Session, client_id: uuid.UUID, year: int, month_name: str) -> bool:
    """True when the client submitted its dashboard for that month. Missing record means no."""
    submission = (
        db.query(MonthlySubmission)
        .filter(
            MonthlySubmission.client_id == client_id,
            MonthlySubmission.year == year,
            MonthlySubmission.month == month_name,
        )
        .first()
    )
    return bool(submission and submission.is_submitted)
