# backend/workshop/services/appointment_service.py
from __future__ import annotations
from datetime import date, datetime, timedelta
from typing import Mapping, Optional, Sequence
import logging

from sqlalchemy.orm import Session

from ..core.db import transaction
from ..core.errors import ConflictError, NotFound, ValidationError
from ..domain.constants import APPOINTMENT_SLOT_MINUTES, NOT_SPECIFIED, ORDER_TYPE_SERVICE
from ..models import (
    Appointment, AppointmentWorkItem, Customer, OrderType, ServiceType, Vehicle,
)
from . import reminder_service

logger = logging.getLogger(__name__)


def slot_start(when: datetime) -> datetime:
    """Floor a date-time to its 30-minute booking slot (:00 or :30)."""
    minute = (when.minute // APPOINTMENT_SLOT_MINUTES) * APPOINTMENT_SLOT_MINUTES
    return when.replace(minute=minute, second=0, microsecond=0)


def clean_work_items(work_items: Optional[Sequence[Mapping]]) -> list[dict]:
    """Validate job rows shared by appointments and orders."""
    if not work_items:
        raise ValidationError("At least one work item is required.")
    cleaned = []
    for i, w in enumerate(work_items, start=1):
        desc = (w.get("Description") or "").strip()
        if not desc:
            raise ValidationError(f"Work item {i}: Description is required.")
        instr = (w.get("Instructions") or "").strip() or None
        cleaned.append({"Description": desc, "Instructions": instr})
    return cleaned


def check_references(
    db: Session, *, order_type_id: int, customer_id: int, vehicle_id: int,
    service_type_id: Optional[int],
) -> Vehicle:
    if not db.get(OrderType, order_type_id):
        raise NotFound(f"Order type {order_type_id} not found.")
    customer = db.get(Customer, customer_id)
    if not customer or not customer.IsActive:
        raise NotFound("Customer not found.")
    vehicle = db.get(Vehicle, vehicle_id)
    if not vehicle or not vehicle.IsActive:
        raise NotFound("Vehicle not found.")
    if vehicle.CustomerID != customer_id:
        raise ValidationError("Vehicle does not belong to the customer.")
    if service_type_id is not None and not db.get(ServiceType, service_type_id):
        raise NotFound(f"Service type {service_type_id} not found.")
    return vehicle


def _get_active(db: Session, appointment_id: int) -> Appointment:
    appt = db.get(Appointment, appointment_id)
    if not appt or not appt.IsActive:
        raise NotFound("Appointment not found.")
    return appt


# -------- Writes --------
def create_appointment(
    db: Session, *,
    order_type_id: int,
    customer_id: int,
    vehicle_id: int,
    service_type_id: Optional[int],
    scheduler_id: int,
    scheduled_at: datetime,
    work_items: Sequence[Mapping],
) -> dict:
    if scheduled_at is None:
        raise ValidationError("ScheduledAt is required.")
    items = clean_work_items(work_items)
    check_references(
        db, order_type_id=order_type_id, customer_id=customer_id,
        vehicle_id=vehicle_id, service_type_id=service_type_id,
    )

    with transaction(db, "create_appointment"):
        appt = Appointment(
            OrderTypeID=order_type_id,
            CustomerID=customer_id,
            VehicleID=vehicle_id,
            ServiceTypeID=service_type_id,
            SchedulerID=scheduler_id,
            ScheduledAt=scheduled_at,
            IsActive=True,
        )
        db.add(appt)
        for w in items:
            appt.work_items.append(AppointmentWorkItem(
                Description=w["Description"],
                Instructions=w["Instructions"],
                PartsReady=False,
                IsActive=True,
            ))
        if order_type_id == ORDER_TYPE_SERVICE:
            reminder_service.deactivate_on_new_service_appointment(db, vehicle_id)
        db.flush()
        appointment_id = appt.AppointmentID

    logger.info("Appointment %s created for VehicleID=%s at %s", appointment_id, vehicle_id, scheduled_at)
    return {
        "AppointmentID": appointment_id,
        "ScheduledAt": scheduled_at,
        "WorkItemCount": len(items),
    }


def reschedule(
    db: Session, *, appointment_id: int, new_scheduled_at: datetime, now: Optional[datetime] = None,
) -> dict:
    appt = _get_active(db, appointment_id)

    now = now or datetime.now()
    if new_scheduled_at <= now:
        raise ValidationError("The new date and time must be in the future.")

    start = slot_start(new_scheduled_at)
    clash = (
        db.query(Appointment)
        .filter(
            Appointment.IsActive == True,  # noqa: E712
            Appointment.AppointmentID != appointment_id,
            Appointment.ScheduledAt >= start,
            Appointment.ScheduledAt < start + timedelta(minutes=APPOINTMENT_SLOT_MINUTES),
        )
        .first()
    )
    if clash:
        raise ConflictError(
            f"Slot {start:%Y-%m-%d %H:%M} is already taken by appointment {clash.AppointmentID}.",
            meta={"AppointmentID": clash.AppointmentID},
        )

    old = appt.ScheduledAt
    with transaction(db, "reschedule"):
        appt.ScheduledAt = new_scheduled_at

    logger.info("Appointment %s rescheduled from %s to %s", appointment_id, old, new_scheduled_at)
    return {
        "AppointmentID": appointment_id,
        "OldScheduledAt": old,
        "NewScheduledAt": new_scheduled_at,
    }


def cancel(db: Session, *, appointment_id: int) -> dict:
    appt = _get_active(db, appointment_id)

    with transaction(db, "cancel_appointment"):
        appt.IsActive = False
        cancelled = 0
        for w in appt.work_items:
            if w.IsActive:
                w.IsActive = False
                cancelled += 1
        if appt.OrderTypeID == ORDER_TYPE_SERVICE:
            reminder_service.reactivate_on_cancel(db, appt.VehicleID)

    logger.info("Appointment %s cancelled (%s work items)", appointment_id, cancelled)
    return {"AppointmentID": appointment_id, "CancelledWorkItems": cancelled}


# -------- Reads --------
def get_by_date(db: Session, *, day: Optional[date] = None) -> list[dict]:
    day = day or date.today()
    start = datetime.combine(day, datetime.min.time())
    rows = (
        db.query(Appointment)
        .filter(
            Appointment.IsActive == True,  # noqa: E712
            Appointment.ScheduledAt >= start,
            Appointment.ScheduledAt < start + timedelta(days=1),
        )
        .order_by(Appointment.ScheduledAt.asc(), Appointment.AppointmentID.asc())
        .all()
    )
    return [
        {
            "AppointmentID": a.AppointmentID,
            "ScheduledAt": a.ScheduledAt,
            "Customer": a.customer.FullName,
            "MobilePhone": a.customer.MobilePhone,
            "Vehicle": a.vehicle.description,
            "OrderType": a.order_type.Name,
            "ServiceType": a.service_type.Name if a.service_type else NOT_SPECIFIED,
        }
        for a in rows
    ]


def get_detail(db: Session, *, appointment_id: int) -> dict:
    a = _get_active(db, appointment_id)
    return {
        "AppointmentID": a.AppointmentID,
        "ScheduledAt": a.ScheduledAt,
        "CreatedAt": a.CreatedAt,
        "OrderTypeID": a.OrderTypeID,
        "OrderType": a.order_type.Name,
        "ServiceType": a.service_type.Name if a.service_type else NOT_SPECIFIED,
        "CustomerID": a.CustomerID,
        "Customer": a.customer.FullName,
        "MobilePhone": a.customer.MobilePhone,
        "Email": a.customer.Email,
        "VehicleID": a.VehicleID,
        "Vehicle": a.vehicle.description,
        "VIN": a.vehicle.VIN,
        "Plates": a.vehicle.Plates,
        "Scheduler": a.scheduler.FullName or a.scheduler.Username,
        "WorkItems": [
            {
                "AppointmentWorkItemID": w.AppointmentWorkItemID,
                "Description": w.Description,
                "Instructions": w.Instructions,
                "PartsReady": w.PartsReady,
            }
            for w in a.work_items if w.IsActive
        ],
    }
