# backend/workshop/services/reminder_service.py
from __future__ import annotations
from datetime import date, datetime, timedelta
from typing import Optional
import logging

from sqlalchemy import and_
from sqlalchemy.orm import Session

from ..core import config
from ..core.db import transaction
from ..core.errors import NotFound, ValidationError
from ..domain.constants import (
    ORDER_TYPE_SERVICE, REMINDER_STAGE_NAMES, next_service_label,
)
from ..models import NextServiceReminder, ServiceType, WorkOrder

logger = logging.getLogger(__name__)

NO_EMAIL = "No email on file"
NO_PLATES = "No plates"


def _check_stage(stage: int) -> int:
    if stage not in REMINDER_STAGE_NAMES:
        raise ValidationError(f"Invalid reminder stage: {stage}. Expected 1, 2 or 3.")
    return stage


def _stage_filter(stage: int):
    R = NextServiceReminder
    if stage == 1:
        return R.FirstReminderSent == False  # noqa: E712
    if stage == 2:
        return and_(R.FirstReminderSent == True, R.SecondReminderSent == False)  # noqa: E712
    return and_(
        R.FirstReminderSent == True,  # noqa: E712
        R.SecondReminderSent == True,  # noqa: E712
        R.ThirdReminderSent == False,  # noqa: E712
    )


def _pending_query(db: Session, stage: int, today: date):
    horizon = today + timedelta(days=config.REMINDER_HORIZON_DAYS)
    return (
        db.query(NextServiceReminder)
        .filter(
            NextServiceReminder.IsActive == True,  # noqa: E712
            _stage_filter(stage),
            NextServiceReminder.NextServiceDate <= horizon,
        )
    )


# -------- Writes (caller owns the transaction) --------
def upsert_on_delivery(db: Session, order: WorkOrder) -> Optional[NextServiceReminder]:
    """
    Record a delivered service order as the vehicle's last service.

    No-op for non-service orders or orders without a service type. The row
    is keyed by vehicle; every call leaves it in the same state for the same
    order, with all reminder flags cleared.
    """
    if order.OrderTypeID != ORDER_TYPE_SERVICE or order.ServiceTypeID is None:
        return None

    service_type = db.get(ServiceType, order.ServiceTypeID)
    if not service_type:
        logger.warning("ServiceTypeID=%s not found, reminder skipped for order %s",
                       order.ServiceTypeID, order.OrderNumber)
        return None

    delivered = order.DeliveredAt or datetime.now()
    last_date = delivered.date()

    row = (
        db.query(NextServiceReminder)
        .filter(NextServiceReminder.VehicleID == order.VehicleID)
        .one_or_none()
    )
    if row is None:
        row = NextServiceReminder(VehicleID=order.VehicleID)
        db.add(row)

    row.CustomerID = order.CustomerID
    row.LastServiceName = service_type.Name
    row.NextServiceLabel = next_service_label(order.ServiceTypeID)
    row.LastOdometer = order.Odometer or 0
    row.LastServiceDate = last_date
    row.NextServiceDate = last_date + timedelta(days=config.SERVICE_INTERVAL_DAYS)
    row.NextServiceOdometer = (order.Odometer or 0) + config.SERVICE_INTERVAL_KM
    row.FirstReminderSent = False
    row.SecondReminderSent = False
    row.ThirdReminderSent = False
    row.IsActive = True
    row.ModifiedAt = datetime.now()
    db.flush()

    logger.info("Reminder upserted for VehicleID=%s (next %s on %s)",
                row.VehicleID, row.NextServiceLabel, row.NextServiceDate)
    return row


def reactivate_on_cancel(db: Session, vehicle_id: int) -> Optional[NextServiceReminder]:
    # first/second already sent, only the final notice stays pending
    row = (
        db.query(NextServiceReminder)
        .filter(NextServiceReminder.VehicleID == vehicle_id)
        .one_or_none()
    )
    if row is None:
        return None
    row.IsActive = True
    row.FirstReminderSent = True
    row.SecondReminderSent = True
    row.ThirdReminderSent = False
    row.ModifiedAt = datetime.now()
    logger.info("Reminder reactivated for VehicleID=%s", vehicle_id)
    return row


def deactivate_on_new_service_appointment(db: Session, vehicle_id: int) -> Optional[NextServiceReminder]:
    row = (
        db.query(NextServiceReminder)
        .filter(NextServiceReminder.VehicleID == vehicle_id)
        .one_or_none()
    )
    if row is None or not row.IsActive:
        return row
    row.IsActive = False
    row.ModifiedAt = datetime.now()
    logger.info("Reminder deactivated for VehicleID=%s (new service booked)", vehicle_id)
    return row


def mark_sent(db: Session, *, reminder_id: int, stage: int, now: Optional[datetime] = None) -> dict:
    _check_stage(stage)
    row = db.get(NextServiceReminder, reminder_id)
    if not row or not row.IsActive:
        raise NotFound("Reminder not found.")

    if stage >= 2 and not row.FirstReminderSent:
        raise ValidationError("The first reminder must be sent before the second.")
    if stage == 3 and not row.SecondReminderSent:
        raise ValidationError("The second reminder must be sent before the third.")

    with transaction(db, "mark_sent"):
        if stage == 1:
            row.FirstReminderSent = True
        elif stage == 2:
            row.SecondReminderSent = True
        else:
            row.ThirdReminderSent = True
        row.ModifiedAt = now or datetime.now()

    logger.info("%s marked as sent for ReminderID=%s", REMINDER_STAGE_NAMES[stage], reminder_id)
    return {
        "ReminderID": row.ReminderID,
        "Stage": stage,
        "FirstReminderSent": row.FirstReminderSent,
        "SecondReminderSent": row.SecondReminderSent,
        "ThirdReminderSent": row.ThirdReminderSent,
        "ModifiedAt": row.ModifiedAt,
    }


# -------- Reads --------
def list_pending(db: Session, *, stage: int, today: Optional[date] = None) -> list[dict]:
    _check_stage(stage)
    today = today or date.today()
    rows = (
        _pending_query(db, stage, today)
        .order_by(NextServiceReminder.NextServiceDate.asc(), NextServiceReminder.ReminderID.asc())
        .all()
    )
    return [
        {
            "ReminderID": r.ReminderID,
            "Customer": r.customer.FullName,
            "MobilePhone": r.customer.MobilePhone,
            "Vehicle": r.vehicle.description,
            "Plates": r.vehicle.Plates or NO_PLATES,
            "LastServiceName": r.LastServiceName,
            "LastServiceDate": r.LastServiceDate,
            "NextServiceLabel": r.NextServiceLabel,
            "NextServiceDate": r.NextServiceDate,
            "NextServiceOdometer": r.NextServiceOdometer,
            "Stage": stage,
        }
        for r in rows
    ]


def get_detail(db: Session, *, reminder_id: int) -> dict:
    row = db.get(NextServiceReminder, reminder_id)
    if not row or not row.IsActive:
        raise NotFound("Reminder not found.")
    c, v = row.customer, row.vehicle
    return {
        "ReminderID": row.ReminderID,
        "CustomerID": c.CustomerID,
        "Customer": c.FullName,
        "MobilePhone": c.MobilePhone,
        "HomePhone": c.HomePhone,
        "Email": c.Email or NO_EMAIL,
        "VehicleID": v.VehicleID,
        "Vehicle": v.description,
        "VIN": v.VIN,
        "Plates": v.Plates or NO_PLATES,
        "LastServiceName": row.LastServiceName,
        "LastServiceDate": row.LastServiceDate,
        "LastOdometer": row.LastOdometer,
        "NextServiceLabel": row.NextServiceLabel,
        "NextServiceDate": row.NextServiceDate,
        "NextServiceOdometer": row.NextServiceOdometer,
        "FirstReminderSent": row.FirstReminderSent,
        "SecondReminderSent": row.SecondReminderSent,
        "ThirdReminderSent": row.ThirdReminderSent,
    }


def summary(db: Session, *, today: Optional[date] = None) -> dict:
    today = today or date.today()
    counts = {
        f"Stage{stage}": _pending_query(db, stage, today).count()
        for stage in REMINDER_STAGE_NAMES
    }
    counts["Total"] = sum(counts.values())
    return counts
