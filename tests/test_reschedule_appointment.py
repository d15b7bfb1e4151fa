"""Tests for GET/POST /reschedule."""

from datetime import date

import pytest

from consultdesk.db.enums import AppointmentStatus
from consultdesk.routers import appointments_public
from consultdesk.services import appointment_service

TODAY = date(2026, 3, 13)


@pytest.fixture(autouse=True)
def fixed_today(monkeypatch):
    monkeypatch.setattr(appointments_public, "local_today", lambda: TODAY)


def _current(db, client_id):
    db.expire_all()
    return appointment_service.get_appointment_for_client(db, client_id)


@pytest.mark.asyncio
async def test_form_shows_current_appointment_and_min_date(
    client, make_client, make_appointment
):
    owner = make_client()
    appointment = make_appointment(owner, date(2026, 3, 20), "10:00", location="Office 4")

    response = await client.get("/reschedule", params={"token": appointment.token})

    assert response.status_code == 200
    assert 'min="2026-03-14"' in response.text
    assert 'value="09:00"' in response.text
    assert "Friday, March 20, 2026 at 10:00" in response.text
    assert "Office 4" in response.text
    assert f'name="token" value="{appointment.token}"' in response.text


@pytest.mark.asyncio
async def test_form_rejects_unknown_and_stale_tokens(client, make_client, make_appointment):
    owner = make_client()
    old = make_appointment(owner, date(2026, 3, 20))
    old_token = old.token
    make_appointment(owner, date(2026, 3, 27))

    unknown = await client.get("/reschedule", params={"token": "nope"})
    stale = await client.get("/reschedule", params={"token": old_token})
    missing = await client.get("/reschedule")

    assert unknown.status_code == 404
    assert stale.status_code == 400
    assert "Appointment changed" in stale.text
    assert missing.status_code == 400


@pytest.mark.asyncio
async def test_proposal_sets_pending_change_and_notifies_consultant(
    client, db, transport, make_client, make_appointment
):
    owner = make_client(assigned_consultant_email="c@example.com")
    appointment = make_appointment(owner, date(2026, 3, 20), "10:00")

    response = await client.post(
        "/reschedule",
        params={"token": appointment.token},
        data={"proposedDate": "2026-03-25", "proposedTime": "14:30"},
    )

    assert response.status_code == 200
    assert "Proposal sent!" in response.text
    assert "Wednesday, March 25, 2026 at 14:30" in response.text

    current = _current(db, owner.id)
    assert current.status == AppointmentStatus.PENDING_CHANGE.value
    assert current.proposed_date == date(2026, 3, 25)
    assert current.proposed_time == "14:30"

    assert len(transport.sent) == 1
    notice = transport.sent[0]
    assert notice.to == "c@example.com"
    assert "Friday, March 20, 2026 at 10:00" in notice.html
    assert "Wednesday, March 25, 2026 at 14:30" in notice.html


@pytest.mark.asyncio
async def test_proposal_token_can_come_from_form_body(
    client, db, make_client, make_appointment
):
    owner = make_client()
    appointment = make_appointment(owner, date(2026, 3, 20))

    response = await client.post(
        "/reschedule",
        data={
            "token": appointment.token,
            "proposedDate": "2026-03-26",
            "proposedTime": "08:00",
        },
    )

    assert response.status_code == 200
    assert _current(db, owner.id).status == AppointmentStatus.PENDING_CHANGE.value


@pytest.mark.asyncio
async def test_past_proposed_date_is_rejected_without_mutation(
    client, db, transport, make_client, make_appointment
):
    owner = make_client()
    appointment = make_appointment(owner, date(2026, 3, 20))

    response = await client.post(
        "/reschedule",
        params={"token": appointment.token},
        data={"proposedDate": "2026-03-12", "proposedTime": "10:00"},
    )

    assert response.status_code == 400
    assert "cannot be in the past" in response.text
    current = _current(db, owner.id)
    assert current.status == AppointmentStatus.SCHEDULED.value
    assert current.proposed_date is None
    assert transport.sent == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "form",
    [
        {},
        {"proposedDate": "2026-03-25"},
        {"proposedTime": "10:00"},
        {"proposedDate": "25/03/2026", "proposedTime": "10:00"},
        {"proposedDate": "2026-02-30", "proposedTime": "10:00"},
        {"proposedDate": "4102444800", "proposedTime": "10:00"},
        {"proposedDate": "2030-01-01T00:00:00", "proposedTime": "10:00"},
        {"proposedDate": "2026-03-25", "proposedTime": "25:00"},
        {"proposedDate": "2026-03-25", "proposedTime": "9h30"},
    ],
)
async def test_invalid_form_is_rejected_without_mutation(
    client, db, transport, make_client, make_appointment, form
):
    owner = make_client()
    appointment = make_appointment(owner, date(2026, 3, 20))

    response = await client.post(
        "/reschedule", params={"token": appointment.token}, data=form
    )

    assert response.status_code == 400
    assert _current(db, owner.id).status == AppointmentStatus.SCHEDULED.value
    assert transport.sent == []


@pytest.mark.asyncio
async def test_proposal_from_confirmed_and_second_proposal_overwrites(
    client, db, make_client, make_appointment
):
    owner = make_client()
    appointment = make_appointment(owner, date(2026, 3, 20), status=AppointmentStatus.CONFIRMED)
    token = appointment.token

    first = await client.post(
        "/reschedule",
        params={"token": token},
        data={"proposedDate": "2026-03-25", "proposedTime": "14:30"},
    )
    second = await client.post(
        "/reschedule",
        params={"token": token},
        data={"proposedDate": "2026-03-27", "proposedTime": "09:00"},
    )

    assert first.status_code == 200
    assert second.status_code == 200
    current = _current(db, owner.id)
    assert current.status == AppointmentStatus.PENDING_CHANGE.value
    assert current.proposed_date == date(2026, 3, 27)
    assert current.proposed_time == "09:00"


@pytest.mark.asyncio
async def test_stale_token_post_is_rejected(client, db, make_client, make_appointment):
    owner = make_client()
    old = make_appointment(owner, date(2026, 3, 20))
    old_token = old.token
    make_appointment(owner, date(2026, 3, 27))

    response = await client.post(
        "/reschedule",
        params={"token": old_token},
        data={"proposedDate": "2026-03-25", "proposedTime": "14:30"},
    )

    assert response.status_code == 400
    assert _current(db, owner.id).status == AppointmentStatus.SCHEDULED.value


@pytest.mark.asyncio
async def test_consultant_notification_failure_does_not_fail_proposal(
    client, db, transport, make_client, make_appointment
):
    owner = make_client(assigned_consultant_email="down@example.com")
    appointment = make_appointment(owner, date(2026, 3, 20))
    transport.fail_all = True

    response = await client.post(
        "/reschedule",
        params={"token": appointment.token},
        data={"proposedDate": "2026-03-25", "proposedTime": "14:30"},
    )

    assert response.status_code == 200
    assert _current(db, owner.id).status == AppointmentStatus.PENDING_CHANGE.value
