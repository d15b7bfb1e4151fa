"""CLI tools for running reminders and local administration."""

import asyncio
import json
import logging
import uuid
from datetime import date, datetime

import click

from consultdesk.core.config import settings
from consultdesk.db.session import SessionLocal


def _parse_date(value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise click.BadParameter("expected YYYY-MM-DD")


@click.group()
@click.option("--verbose", is_flag=True, help="Debug logging")
def cli(verbose: bool):
    """consultdesk CLI tools."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option("--date", "run_date", default=None, help="Run as if today were YYYY-MM-DD")
def send_reminders(run_date: str | None):
    """
    Run the daily dashboard reminder batch once.

    Without --date the current day in REMINDER_TIMEZONE is used. Safe to run
    more than once per day: reminders already sent are skipped.

    Example:
        python -m consultdesk.cli send-reminders --date 2026-03-13
    """
    from consultdesk.services import reminder_service
    from consultdesk.services.email_transport import build_transport
    from consultdesk.services.notifier import Notifier

    parsed = _parse_date(run_date)
    notifier = Notifier(build_transport(settings))
    db = SessionLocal()
    try:
        summary = asyncio.run(
            reminder_service.process_dashboard_reminders(db, notifier, parsed)
        )
    finally:
        db.close()

    click.echo(json.dumps(summary, indent=2))
    if summary["failed"]:
        raise SystemExit(1)


@cli.command()
@click.option("--client-id", required=True, help="Client UUID")
@click.option("--date", "appointment_date", required=True, help="Appointment date (YYYY-MM-DD)")
@click.option("--time", "appointment_time", required=True, help="Appointment time (HH:MM)")
@click.option("--location", default=None, help="Optional location")
def schedule_appointment(
    client_id: str, appointment_date: str, appointment_time: str, location: str | None
):
    """
    Create or replace a client's appointment and print its links.

    Replacing mints a new token: links from earlier emails stop working.
    """
    from consultdesk.services import appointment_email_service, appointment_service

    parsed = _parse_date(appointment_date)
    db = SessionLocal()
    try:
        client = appointment_service.get_client(db, uuid.UUID(client_id))
        if not client:
            click.echo(f"❌ Client {client_id} not found")
            raise SystemExit(1)

        appointment = appointment_service.schedule_appointment(
            db,
            client_id=client.id,
            appointment_date=parsed,
            appointment_time=appointment_time,
            location=location,
        )
        confirm_url, reschedule_url = appointment_email_service.build_action_links(
            appointment.token
        )
        click.echo(f"✓ Appointment scheduled for {client.company_name}")
        click.echo(f"  Confirm:    {confirm_url}")
        click.echo(f"  Reschedule: {reschedule_url}")
    except ValueError as e:
        db.rollback()
        click.echo(f"❌ Error: {e}")
        raise SystemExit(1)
    finally:
        db.close()


@cli.command()
def init_db():
    """Create all tables (local development; use alembic elsewhere)."""
    from consultdesk.db import models  # noqa: F401
    from consultdesk.db.base import Base
    from consultdesk.db.session import engine

    Base.metadata.create_all(bind=engine)
    click.echo("✓ Tables created")


if __name__ == "__main__":
    cli()
