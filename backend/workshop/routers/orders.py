# backend/workshop/routers/orders.py
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from ..core.api import ok, list_meta
from ..core.db import get_db
from ..core.security import (
    ADVISOR_ROLES, MANAGER_ROLES, SHOP_FLOOR_ROLES, get_current_user, require_roles,
)
from ..models.user import AppUser
from ..schemas.order import (
    AssignIn, ChecklistIn, CommentsIn, CostsIn, OrderCreate, OrderFromAppointment,
)
from ..schemas.parts import OrderPartsIn
from ..services import order_service, work_item_service

router = APIRouter(prefix="/orders", tags=["orders"])

Advisor = require_roles(*ADVISOR_ROLES)
Manager = require_roles(*MANAGER_ROLES)
ShopFloor = require_roles(*SHOP_FLOOR_ROLES)
CostEditor = require_roles(*ADVISOR_ROLES, "shop_manager")


# ---- Orders ----
@router.post("", status_code=201)
def create_order(payload: OrderCreate, db: Session = Depends(get_db), current: AppUser = Depends(Advisor)):
    data = order_service.create_order(
        db,
        order_type_id=payload.OrderTypeID,
        customer_id=payload.CustomerID,
        vehicle_id=payload.VehicleID,
        service_type_id=payload.ServiceTypeID,
        advisor_id=current.UserID,
        odometer=payload.Odometer,
        promised_delivery_at=payload.PromisedDeliveryAt,
        advisor_notes=payload.AdvisorNotes,
        work_items=[w.model_dump() for w in payload.WorkItems],
    )
    return ok(data, status_code=201)


@router.post("/from-appointment/{appointment_id}", status_code=201)
def create_from_appointment(
    payload: OrderFromAppointment,
    appointment_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    current: AppUser = Depends(Advisor),
):
    data = order_service.create_from_appointment(
        db,
        appointment_id=appointment_id,
        advisor_id=current.UserID,
        odometer=payload.Odometer,
        promised_delivery_at=payload.PromisedDeliveryAt,
        advisor_notes=payload.AdvisorNotes,
    )
    return ok(data, status_code=201)


@router.get("/advisor/{order_type_id}")
def list_for_advisor(
    order_type_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    current: AppUser = Depends(get_current_user),
):
    items = order_service.list_for_advisor(db, order_type_id=order_type_id, advisor_id=current.UserID)
    return ok(items, meta=list_meta(items))


@router.get("/shop-manager/{order_type_id}", dependencies=[Depends(Manager)])
def list_for_shop_manager(order_type_id: int = Path(..., ge=1), db: Session = Depends(get_db)):
    items = order_service.list_for_shop_manager(db, order_type_id=order_type_id)
    return ok(items, meta=list_meta(items))


@router.get("/detail/{order_id}", dependencies=[Depends(get_current_user)])
def get_order(order_id: int = Path(..., ge=1), db: Session = Depends(get_db)):
    return ok(order_service.get_detail(db, order_id=order_id))


@router.put("/{order_id}/cancel", dependencies=[Depends(Advisor)])
def cancel_order(order_id: int = Path(..., ge=1), db: Session = Depends(get_db)):
    return ok(order_service.cancel(db, order_id=order_id))


@router.put("/{order_id}/deliver", dependencies=[Depends(Advisor)])
def deliver_order(order_id: int = Path(..., ge=1), db: Session = Depends(get_db)):
    return ok(order_service.deliver(db, order_id=order_id))


@router.put("/{order_id}/costs", dependencies=[Depends(CostEditor)])
def finalize_costs(payload: CostsIn, order_id: int = Path(..., ge=1), db: Session = Depends(get_db)):
    return ok(order_service.finalize_costs(
        db, order_id=order_id, labor_costs=[i.model_dump() for i in payload.Items],
    ))


@router.put("/{order_id}/checklist", dependencies=[Depends(ShopFloor)])
def save_checklist(payload: ChecklistIn, order_id: int = Path(..., ge=1), db: Session = Depends(get_db)):
    return ok(order_service.save_checklist(db, order_id=order_id, values=payload.model_dump()))


# ---- Work items ----
@router.get("/work-items", dependencies=[Depends(get_current_user)])
def technician_board(day: Optional[date] = Query(None, alias="date"), db: Session = Depends(get_db)):
    items = order_service.list_technician_work(db, day=day)
    return ok(items, meta=list_meta(items, {"date": day or date.today()}))


@router.post("/work-items/{work_item_id}/parts", status_code=201, dependencies=[Depends(ShopFloor)])
def add_parts(payload: OrderPartsIn, work_item_id: int = Path(..., ge=1), db: Session = Depends(get_db)):
    data = order_service.add_parts(
        db, work_item_id=work_item_id, parts=[p.model_dump() for p in payload.Parts],
    )
    return ok(data, status_code=201)


@router.put("/work-items/{work_item_id}/assign", dependencies=[Depends(Manager)])
def assign(payload: AssignIn, work_item_id: int = Path(..., ge=1), db: Session = Depends(get_db)):
    return ok(work_item_service.assign_technician(
        db, work_item_id=work_item_id, technician_id=payload.TechnicianID,
        manager_comments=payload.Comments,
    ))


@router.put("/work-items/{work_item_id}/start", dependencies=[Depends(ShopFloor)])
def start(work_item_id: int = Path(..., ge=1), db: Session = Depends(get_db)):
    return ok(work_item_service.start(db, work_item_id=work_item_id))


@router.put("/work-items/{work_item_id}/pause", dependencies=[Depends(ShopFloor)])
def pause(payload: CommentsIn, work_item_id: int = Path(..., ge=1), db: Session = Depends(get_db)):
    return ok(work_item_service.pause(db, work_item_id=work_item_id, comments=payload.Comments))


@router.put("/work-items/{work_item_id}/complete", dependencies=[Depends(ShopFloor)])
def complete(payload: CommentsIn, work_item_id: int = Path(..., ge=1), db: Session = Depends(get_db)):
    return ok(work_item_service.complete(db, work_item_id=work_item_id, comments=payload.Comments))
