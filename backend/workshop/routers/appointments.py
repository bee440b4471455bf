# backend/workshop/routers/appointments.py
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from ..core.api import ok, list_meta
from ..core.db import get_db
from ..core.security import SCHEDULING_ROLES, get_current_user, require_roles
from ..models.user import AppUser
from ..schemas.appointment import AppointmentCreate, RescheduleIn
from ..services import appointment_service

router = APIRouter(prefix="/appointments", tags=["appointments"])

Scheduler = require_roles(*SCHEDULING_ROLES)


@router.post("", status_code=201)
def create_appointment(
    payload: AppointmentCreate,
    db: Session = Depends(get_db),
    current: AppUser = Depends(Scheduler),
):
    data = appointment_service.create_appointment(
        db,
        order_type_id=payload.OrderTypeID,
        customer_id=payload.CustomerID,
        vehicle_id=payload.VehicleID,
        service_type_id=payload.ServiceTypeID,
        scheduler_id=current.UserID,
        scheduled_at=payload.ScheduledAt,
        work_items=[w.model_dump() for w in payload.WorkItems],
    )
    return ok(data, status_code=201)


@router.get("", dependencies=[Depends(get_current_user)])
def list_by_date(day: Optional[date] = Query(None, alias="date"), db: Session = Depends(get_db)):
    items = appointment_service.get_by_date(db, day=day)
    return ok(items, meta=list_meta(items, {"date": day or date.today()}))


@router.get("/{appointment_id}", dependencies=[Depends(get_current_user)])
def get_appointment(appointment_id: int = Path(..., ge=1), db: Session = Depends(get_db)):
    return ok(appointment_service.get_detail(db, appointment_id=appointment_id))


@router.put("/{appointment_id}/reschedule", dependencies=[Depends(Scheduler)])
def reschedule(payload: RescheduleIn, appointment_id: int = Path(..., ge=1), db: Session = Depends(get_db)):
    return ok(appointment_service.reschedule(
        db, appointment_id=appointment_id, new_scheduled_at=payload.NewScheduledAt,
    ))


@router.put("/{appointment_id}/cancel", dependencies=[Depends(Scheduler)])
def cancel(appointment_id: int = Path(..., ge=1), db: Session = Depends(get_db)):
    return ok(appointment_service.cancel(db, appointment_id=appointment_id))
