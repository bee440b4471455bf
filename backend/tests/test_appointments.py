from datetime import date, datetime, timedelta, timezone

import pytest

from workshop.core.errors import ConflictError, NotFound, ValidationError
from workshop.models import Appointment, AppointmentWorkItem, NextServiceReminder
from workshop.schemas.appointment import AppointmentCreate
from workshop.services import appointment_service


def _reminder(db, shop, vehicle_id=None, **flags):
    r = NextServiceReminder(
        CustomerID=shop.customer_id, VehicleID=vehicle_id or shop.vehicle_id,
        LastServiceName="First Service", NextServiceLabel="Second Service",
        LastOdometer=10000, LastServiceDate=date(2024, 7, 10),
        NextServiceDate=date(2025, 1, 8), NextServiceOdometer=20000,
        FirstReminderSent=flags.get("first", False),
        SecondReminderSent=flags.get("second", False),
        ThirdReminderSent=flags.get("third", False),
        IsActive=flags.get("active", True),
    )
    db.add(r)
    db.commit()
    return r.ReminderID


def test_slot_start_floors_to_half_hour():
    assert appointment_service.slot_start(datetime(2025, 1, 10, 9, 15)) == datetime(2025, 1, 10, 9, 0)
    assert appointment_service.slot_start(datetime(2025, 1, 10, 9, 30, 45)) == datetime(2025, 1, 10, 9, 30)
    assert appointment_service.slot_start(datetime(2025, 1, 10, 9, 59)) == datetime(2025, 1, 10, 9, 30)


def test_create_service_appointment_deactivates_vehicle_reminder(db, shop, make_appointment):
    reminder_id = _reminder(db, shop)

    res = make_appointment(scheduled_at=datetime(2025, 1, 10, 9, 0))

    assert res["WorkItemCount"] == 1
    assert res["ScheduledAt"] == datetime(2025, 1, 10, 9, 0)
    appt = db.get(Appointment, res["AppointmentID"])
    assert [w.Description for w in appt.work_items] == ["Oil change"]
    assert db.get(NextServiceReminder, reminder_id).IsActive is False


def test_create_repair_appointment_keeps_reminder(db, shop, make_appointment):
    reminder_id = _reminder(db, shop)
    make_appointment(order_type_id=3, service_type_id=None)
    assert db.get(NextServiceReminder, reminder_id).IsActive is True


def test_create_requires_work_items(db, make_appointment):
    with pytest.raises(ValidationError):
        make_appointment(work_items=[])
    with pytest.raises(ValidationError):
        make_appointment(work_items=[{"Description": "   "}])
    assert db.query(Appointment).count() == 0


def test_create_unknown_vehicle_is_not_found(make_appointment):
    with pytest.raises(NotFound):
        make_appointment(vehicle_id=999)


def test_create_does_not_check_slot_collisions(make_appointment, shop, tomorrow_nine):
    make_appointment(scheduled_at=tomorrow_nine)
    second = make_appointment(scheduled_at=tomorrow_nine, vehicle_id=shop.other_vehicle_id)
    assert second["AppointmentID"]


def test_reschedule_into_taken_slot_conflicts(db, shop, make_appointment, tomorrow_nine):
    make_appointment(scheduled_at=tomorrow_nine, vehicle_id=shop.other_vehicle_id)
    mine = make_appointment(scheduled_at=tomorrow_nine + timedelta(hours=2))

    with pytest.raises(ConflictError):
        appointment_service.reschedule(
            db, appointment_id=mine["AppointmentID"],
            new_scheduled_at=tomorrow_nine + timedelta(minutes=15),
        )
    appt = db.get(Appointment, mine["AppointmentID"])
    assert appt.ScheduledAt == tomorrow_nine + timedelta(hours=2)


def test_reschedule_scenario_with_fixed_clock(db, shop, make_appointment):
    make_appointment(scheduled_at=datetime(2025, 1, 10, 9, 0), vehicle_id=shop.other_vehicle_id)
    mine = make_appointment(scheduled_at=datetime(2025, 1, 10, 12, 0))

    with pytest.raises(ConflictError):
        appointment_service.reschedule(
            db, appointment_id=mine["AppointmentID"],
            new_scheduled_at=datetime(2025, 1, 10, 9, 15),
            now=datetime(2025, 1, 9, 18, 0),
        )


def test_reschedule_to_next_slot_succeeds(db, shop, make_appointment, tomorrow_nine):
    make_appointment(scheduled_at=tomorrow_nine, vehicle_id=shop.other_vehicle_id)
    mine = make_appointment(scheduled_at=tomorrow_nine + timedelta(hours=2))

    res = appointment_service.reschedule(
        db, appointment_id=mine["AppointmentID"],
        new_scheduled_at=tomorrow_nine + timedelta(minutes=30),
    )

    assert res["OldScheduledAt"] == tomorrow_nine + timedelta(hours=2)
    assert res["NewScheduledAt"] == tomorrow_nine + timedelta(minutes=30)
    assert db.get(Appointment, mine["AppointmentID"]).ScheduledAt == tomorrow_nine + timedelta(minutes=30)


def test_reschedule_within_own_slot_is_allowed(db, make_appointment, tomorrow_nine):
    mine = make_appointment(scheduled_at=tomorrow_nine)
    res = appointment_service.reschedule(
        db, appointment_id=mine["AppointmentID"], new_scheduled_at=tomorrow_nine + timedelta(minutes=10),
    )
    assert res["NewScheduledAt"] == tomorrow_nine + timedelta(minutes=10)


def test_reschedule_ignores_cancelled_appointments(db, shop, make_appointment, tomorrow_nine):
    other = make_appointment(scheduled_at=tomorrow_nine, vehicle_id=shop.other_vehicle_id)
    appointment_service.cancel(db, appointment_id=other["AppointmentID"])
    mine = make_appointment(scheduled_at=tomorrow_nine + timedelta(hours=2))

    appointment_service.reschedule(db, appointment_id=mine["AppointmentID"], new_scheduled_at=tomorrow_nine)


def test_reschedule_must_be_in_the_future(db, make_appointment, tomorrow_nine):
    mine = make_appointment(scheduled_at=tomorrow_nine)
    now = datetime(2025, 3, 1, 10, 0)
    with pytest.raises(ValidationError):
        appointment_service.reschedule(
            db, appointment_id=mine["AppointmentID"], new_scheduled_at=datetime(2025, 3, 1, 9, 30), now=now,
        )
    with pytest.raises(ValidationError):
        appointment_service.reschedule(
            db, appointment_id=mine["AppointmentID"], new_scheduled_at=now, now=now,
        )


def test_reschedule_missing_appointment(db, shop):
    with pytest.raises(NotFound):
        appointment_service.reschedule(db, appointment_id=42, new_scheduled_at=datetime.now() + timedelta(days=1))


def test_cancel_cascades_to_work_items(db, make_appointment):
    res = make_appointment(work_items=[{"Description": "Oil change"}, {"Description": "Wipers"}])

    out = appointment_service.cancel(db, appointment_id=res["AppointmentID"])

    assert out["CancelledWorkItems"] == 2
    appt = db.get(Appointment, res["AppointmentID"])
    assert appt.IsActive is False
    items = db.query(AppointmentWorkItem).filter_by(AppointmentID=res["AppointmentID"]).all()
    assert items and all(w.IsActive is False for w in items)


def test_cancel_twice_is_not_found(db, make_appointment):
    res = make_appointment()
    appointment_service.cancel(db, appointment_id=res["AppointmentID"])
    with pytest.raises(NotFound):
        appointment_service.cancel(db, appointment_id=res["AppointmentID"])


def test_cancel_service_appointment_reactivates_reminder(db, shop, make_appointment):
    reminder_id = _reminder(db, shop)
    res = make_appointment()
    assert db.get(NextServiceReminder, reminder_id).IsActive is False

    appointment_service.cancel(db, appointment_id=res["AppointmentID"])

    r = db.get(NextServiceReminder, reminder_id)
    db.refresh(r)
    assert (r.IsActive, r.FirstReminderSent, r.SecondReminderSent, r.ThirdReminderSent) == (True, True, True, False)


def test_get_by_date_lists_active_in_time_order(db, shop, make_appointment, tomorrow_nine):
    late = make_appointment(scheduled_at=tomorrow_nine + timedelta(hours=3), service_type_id=None,
                            order_type_id=3)
    early = make_appointment(scheduled_at=tomorrow_nine, vehicle_id=shop.other_vehicle_id)
    gone = make_appointment(scheduled_at=tomorrow_nine + timedelta(hours=1))
    make_appointment(scheduled_at=tomorrow_nine + timedelta(days=1))
    appointment_service.cancel(db, appointment_id=gone["AppointmentID"])

    rows = appointment_service.get_by_date(db, day=tomorrow_nine.date())

    assert [r["AppointmentID"] for r in rows] == [early["AppointmentID"], late["AppointmentID"]]
    assert rows[0]["Customer"] == "Laura Gomez"
    assert rows[0]["Vehicle"] == "Mazda CX-5 2019"
    assert rows[1]["ServiceType"] == "Not specified"
    assert rows[1]["OrderType"] == "Repair"


def test_get_detail(db, shop, make_appointment):
    res = make_appointment(work_items=[{"Description": "Oil change", "Instructions": "Synthetic 5W-30"}])
    detail = appointment_service.get_detail(db, appointment_id=res["AppointmentID"])
    assert detail["VIN"] == "3N1CN8AP1ML000001"
    assert detail["Scheduler"] == "Sofia"
    assert detail["WorkItems"][0]["Instructions"] == "Synthetic 5W-30"

    appointment_service.cancel(db, appointment_id=res["AppointmentID"])
    with pytest.raises(NotFound):
        appointment_service.get_detail(db, appointment_id=res["AppointmentID"])


# ---- HTTP ----
def test_api_create_and_list(client, shop, tomorrow_nine):
    body = {
        "OrderTypeID": 1, "CustomerID": shop.customer_id, "VehicleID": shop.vehicle_id,
        "ServiceTypeID": 1, "ScheduledAt": tomorrow_nine.isoformat(),
        "WorkItems": [{"Description": "Oil change"}],
    }
    r = client.post("/appointments", json=body)
    assert r.status_code == 201
    data = r.json()
    assert data["ok"] is True and data["data"]["WorkItemCount"] == 1

    r = client.get("/appointments", params={"date": tomorrow_nine.date().isoformat()})
    assert r.status_code == 200
    assert r.json()["meta"]["count"] == 1


def test_api_create_without_work_items_is_422(client, shop, tomorrow_nine):
    body = {
        "OrderTypeID": 1, "CustomerID": shop.customer_id, "VehicleID": shop.vehicle_id,
        "ScheduledAt": tomorrow_nine.isoformat(), "WorkItems": [],
    }
    r = client.post("/appointments", json=body)
    assert r.status_code == 422
    assert r.json()["ok"] is False


def test_api_reschedule_conflict_envelope(client, shop, make_appointment, tomorrow_nine):
    make_appointment(scheduled_at=tomorrow_nine, vehicle_id=shop.other_vehicle_id)
    mine = make_appointment(scheduled_at=tomorrow_nine + timedelta(hours=2))

    r = client.put(f"/appointments/{mine['AppointmentID']}/reschedule",
                   json={"NewScheduledAt": (tomorrow_nine + timedelta(minutes=15)).isoformat()})

    assert r.status_code == 409
    body = r.json()
    assert body["ok"] is False
    assert body["meta"]["kind"] == "conflict"


def test_api_cancel_then_detail_is_404(client, make_appointment):
    res = make_appointment()
    assert client.put(f"/appointments/{res['AppointmentID']}/cancel").status_code == 200
    assert client.get(f"/appointments/{res['AppointmentID']}").status_code == 404


def test_api_technician_cannot_book(client, shop, login_as, tomorrow_nine):
    login_as(shop.tech_id)
    body = {
        "OrderTypeID": 1, "CustomerID": shop.customer_id, "VehicleID": shop.vehicle_id,
        "ScheduledAt": tomorrow_nine.isoformat(), "WorkItems": [{"Description": "Oil change"}],
    }
    assert client.post("/appointments", json=body).status_code == 403


def test_schema_converts_offset_to_local_time(shop):
    body = AppointmentCreate(
        OrderTypeID=1, CustomerID=shop.customer_id, VehicleID=shop.vehicle_id,
        ScheduledAt="2025-01-10T15:00:00+00:00", WorkItems=[{"Description": "Oil change"}],
    )
    expected = datetime(2025, 1, 10, 15, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
    assert body.ScheduledAt.tzinfo is None
    assert body.ScheduledAt == expected


def test_api_reschedule_with_utc_offset(client, db, make_appointment, tomorrow_nine):
    mine = make_appointment(scheduled_at=tomorrow_nine)
    target = (datetime.now(timezone.utc) + timedelta(days=3)).replace(hour=10, minute=0, second=0, microsecond=0)

    r = client.put(f"/appointments/{mine['AppointmentID']}/reschedule",
                   json={"NewScheduledAt": target.isoformat()})

    assert r.status_code == 200
    assert r.json()["ok"] is True
    stored = db.get(Appointment, mine["AppointmentID"]).ScheduledAt
    assert stored.tzinfo is None
    assert stored == target.astimezone().replace(tzinfo=None)
