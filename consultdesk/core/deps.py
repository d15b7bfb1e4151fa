"""FastAPI dependencies for database access and email delivery."""

from typing import Generator

from fastapi import Request
from sqlalchemy.orm import Session

from consultdesk.db.session import SessionLocal
from consultdesk.services.notifier import Notifier


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_notifier(request: Request) -> Notifier:
    """Notifier built once at startup (see main.py)."""
    return request.app.state.notifier
