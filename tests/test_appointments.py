# tests/test_appointments.py
from datetime import date, timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from conftest import create_request, next_saturday, next_weekday
from portfolio.appointments import TIME_SLOTS, available_slots
from portfolio.models import Appointment, AppointmentStatus


def _slots(c, day):
    r = c.get(f"/api/appointments/slots?date={day.isoformat()}")
    assert r.status_code == 200
    return r.json()["slots"]


def _book(c, day, slot="10:00", **extra):
    return c.post("/api/customer/appointments", json={"date": day.isoformat(), "time_slot": slot, **extra})


def test_weekday_has_full_grid(client):
    assert _slots(client, next_weekday()) == TIME_SLOTS
    assert len(TIME_SLOTS) == 8
    assert "12:00" not in TIME_SLOTS


def test_weekend_and_past_are_empty(client):
    assert _slots(client, next_saturday()) == []
    assert _slots(client, date.today() - timedelta(days=1)) == []


def test_booking_removes_slot(customer_client, client):
    day = next_weekday()
    r = _book(customer_client, day, "10:00", type="project_discussion", notes="Relaunch")
    assert r.status_code == 200
    assert r.json()["status"] == "pending"
    assert r.json()["type"] == "project_discussion"

    slots = _slots(client, day)
    assert "10:00" not in slots
    assert len(slots) == 7


def test_double_booking_conflicts(customer_client, other_customer_client):
    day = next_weekday()
    assert _book(customer_client, day, "14:00").status_code == 200
    assert _book(other_customer_client, day, "14:00").status_code == 409


def test_cancel_frees_slot(customer_client, other_customer_client, client):
    day = next_weekday()
    appointment_id = _book(customer_client, day, "09:00").json()["id"]

    r = customer_client.post(f"/api/customer/appointments/{appointment_id}/cancel")
    assert r.status_code == 200
    assert r.json()["status"] == "cancelled"
    assert "09:00" in _slots(client, day)

    assert _book(other_customer_client, day, "09:00").status_code == 200


def test_invalid_slot_weekend_and_past(customer_client):
    assert _book(customer_client, next_weekday(), "12:00").status_code == 400
    assert _book(customer_client, next_saturday(), "10:00").status_code == 400
    assert _book(customer_client, date.today() - timedelta(days=1), "10:00").status_code == 400


def test_booking_linked_to_own_request(customer_client):
    request_id = create_request(customer_client)
    r = _book(customer_client, next_weekday(), "16:00", request_id=request_id)
    assert r.status_code == 200
    assert r.json()["request_id"] == request_id


def test_booking_with_foreign_request_forbidden(customer_client, other_customer_client, client):
    day = next_weekday()
    foreign_id = create_request(customer_client)

    r = _book(other_customer_client, day, "16:00", request_id=foreign_id)
    assert r.status_code == 403
    assert "16:00" in _slots(client, day)


def test_booking_with_unknown_request_not_found(customer_client, client):
    day = next_weekday()
    r = _book(customer_client, day, "16:00", request_id=99999)
    assert r.status_code == 404
    assert r.json()["detail"] == "Anfrage nicht gefunden"
    assert "16:00" in _slots(client, day)


def test_cancel_foreign_appointment(customer_client, other_customer_client):
    appointment_id = _book(customer_client, next_weekday()).json()["id"]
    r = other_customer_client.post(f"/api/customer/appointments/{appointment_id}/cancel")
    assert r.status_code == 404


def test_admin_confirm_and_cancelled_is_final(customer_client, admin_client):
    appointment_id = _book(customer_client, next_weekday()).json()["id"]

    r = admin_client.put(f"/api/admin/appointments/{appointment_id}", json={"status": "confirmed"})
    assert r.status_code == 200
    assert r.json()["customer_email"] == "max@beispiel.de"

    confirmed = admin_client.get("/api/admin/appointments?status=confirmed").json()
    assert [a["id"] for a in confirmed] == [appointment_id]

    admin_client.put(f"/api/admin/appointments/{appointment_id}", json={"status": "cancelled"})
    r = admin_client.put(f"/api/admin/appointments/{appointment_id}", json={"status": "pending"})
    assert r.status_code == 400


def test_database_rejects_second_active_booking(db, customer_client):
    day = next_weekday()
    db.add(Appointment(customer_id=customer_client.customer_id, date=day, time_slot="11:00"))
    db.commit()

    db.add(Appointment(customer_id=customer_client.customer_id, date=day, time_slot="11:00"))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()

    # stornierte Einträge blockieren nichts
    db.add(Appointment(
        customer_id=customer_client.customer_id, date=day, time_slot="15:00",
        status=AppointmentStatus.cancelled,
    ))
    db.add(Appointment(customer_id=customer_client.customer_id, date=day, time_slot="15:00"))
    db.commit()


def test_available_slots_with_fixed_today(db):
    monday = date(2030, 1, 7)
    assert available_slots(db, monday, today=date(2030, 1, 1)) == TIME_SLOTS
    assert available_slots(db, monday, today=date(2030, 1, 8)) == []
