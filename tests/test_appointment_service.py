"""Tests for the appointment store operations."""

from datetime import date

import pytest

from consultdesk.db.enums import AppointmentStatus, ReminderKind
from consultdesk.db.models import Appointment, AppointmentToken
from consultdesk.services import appointment_service


def test_schedule_creates_appointment_and_records_token(db, make_client):
    owner = make_client()

    appointment = appointment_service.schedule_appointment(
        db,
        client_id=owner.id,
        appointment_date=date(2026, 3, 20),
        appointment_time="10:00",
    )

    assert appointment.status == AppointmentStatus.SCHEDULED.value
    assert len(appointment.token) >= 40
    assert db.query(AppointmentToken).filter_by(token=appointment.token).one().client_id == owner.id


def test_replacement_keeps_one_appointment_and_resets_state(db, make_client, make_appointment):
    owner = make_client()
    first = make_appointment(owner, date(2026, 3, 20), status=AppointmentStatus.PENDING_CHANGE)
    old_token = first.token
    appointment_service.claim_reminder(db, first, ReminderKind.CLIENT, 7)

    second = appointment_service.schedule_appointment(
        db,
        client_id=owner.id,
        appointment_date=date(2026, 4, 3),
        appointment_time="15:00",
        location="Visio",
    )

    assert db.query(Appointment).filter_by(client_id=owner.id).count() == 1
    assert second.token != old_token
    assert second.status == AppointmentStatus.SCHEDULED.value
    assert second.proposed_date is None
    assert second.proposed_time is None
    assert appointment_service.reminders_sent(db, second.token) == set()
    assert db.query(AppointmentToken).filter_by(client_id=owner.id).count() == 2


@pytest.mark.parametrize("bad_time", ["", "9:00", "24:00", "12:60", "noon"])
def test_schedule_rejects_malformed_time(db, make_client, bad_time):
    owner = make_client()
    with pytest.raises(ValueError):
        appointment_service.schedule_appointment(
            db,
            client_id=owner.id,
            appointment_date=date(2026, 3, 20),
            appointment_time=bad_time,
        )


def test_claim_reminder_is_add_to_set(db, make_client, make_appointment):
    owner = make_client()
    appointment = make_appointment(owner, date(2026, 3, 20))

    assert appointment_service.claim_reminder(db, appointment, ReminderKind.CLIENT, 7) is True
    assert appointment_service.claim_reminder(db, appointment, ReminderKind.CLIENT, 7) is False
    # Same offset, different kind is a separate marker
    assert appointment_service.claim_reminder(db, appointment, ReminderKind.ESCALATION, 7) is True
    assert appointment_service.reminders_sent(db, appointment.token) == {7}


def test_release_reminder_allows_reclaim(db, make_client, make_appointment):
    owner = make_client()
    appointment = make_appointment(owner, date(2026, 3, 20))
    token = appointment.token
    appointment_service.claim_reminder(db, appointment, ReminderKind.CLIENT, 3)

    appointment_service.release_reminder(db, token, ReminderKind.CLIENT, 3)

    assert appointment_service.reminders_sent(db, token) == set()
    assert appointment_service.claim_reminder(db, appointment, ReminderKind.CLIENT, 3) is True


def test_confirm_is_guarded_by_token(db, make_client, make_appointment):
    owner = make_client()
    appointment = make_appointment(owner, date(2026, 3, 20))
    token = appointment.token

    assert appointment_service.confirm_appointment(db, owner.id, "other-token") is False
    assert appointment_service.confirm_appointment(db, owner.id, token) is True
    # Already confirmed: nothing to update
    assert appointment_service.confirm_appointment(db, owner.id, token) is False


def test_propose_new_date_is_guarded_by_token(db, make_client, make_appointment):
    owner = make_client()
    appointment = make_appointment(owner, date(2026, 3, 20))
    token = appointment.token

    assert (
        appointment_service.propose_new_date(db, owner.id, "other", date(2026, 3, 25), "10:00")
        is False
    )
    assert (
        appointment_service.propose_new_date(db, owner.id, token, date(2026, 3, 25), "10:00")
        is True
    )
    current = appointment_service.get_appointment_for_client(db, owner.id)
    assert current.status == AppointmentStatus.PENDING_CHANGE.value
    assert current.proposed_date == date(2026, 3, 25)


def test_list_active_clients_excludes_inactive(db, make_client):
    active = make_client()
    make_client(status="inactive")

    assert [c.id for c in appointment_service.list_active_clients(db)] == [active.id]
