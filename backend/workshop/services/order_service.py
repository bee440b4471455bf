# backend/workshop/services/order_service.py
from __future__ import annotations
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence
import logging
import re

from sqlalchemy import or_, and_
from sqlalchemy.orm import Session

from ..core.db import transaction
from ..core.errors import ConflictError, NotFound, PreconditionFailed, ValidationError
from ..domain.constants import (
    OPEN_ORDER_STATUSES, ORDER_CANCELLED, ORDER_DELIVERED, ORDER_NUMBER_DIGITS, ORDER_PENDING,
    ORDER_STATUS_NAMES, ORDER_TYPE_SERVICE, ORDER_TYPE_WARRANTY, NOT_SPECIFIED,
    TECHNICIAN_BOARD_STATUSES, UNASSIGNED, WORK_ASSIGNED, WORK_CANCELLED, WORK_COMPLETED,
    WORK_PENDING, order_prefix, work_status_color, work_status_name,
)
from ..domain.money import to_money, with_tax
from ..domain.scopes import OrderScoped
from ..models import (
    Appointment, AppUser, OrderWorkItem, ServiceChecklist, WorkOrder,
)
from ..models.checklist import CHECK_FIELDS, RATING_FIELDS
from . import parts_service, reminder_service
from .appointment_service import check_references, clean_work_items
from .work_item_service import recount

logger = logging.getLogger(__name__)

_SUFFIX_RE = re.compile(r"(\d+)$")


def _user_name(user: Optional[AppUser], default: Optional[str] = None) -> Optional[str]:
    if user is None:
        return default
    return user.FullName or user.Username


def next_order_number(db: Session, order_type_id: int) -> str:
    """
    `{PREFIX}-{000000}`: highest existing suffix for the prefix, plus one.

    Read-then-write without a lock; two concurrent creates may compute the
    same number and the unique index rejects the second one.
    """
    prefix = order_prefix(order_type_id)
    numbers = (
        db.query(WorkOrder.OrderNumber)
        .filter(WorkOrder.OrderNumber.like(f"{prefix}-%"))
        .all()
    )
    highest = 0
    for (number,) in numbers:
        m = _SUFFIX_RE.search(number or "")
        if m:
            highest = max(highest, int(m.group(1)))
    return f"{prefix}-{highest + 1:0{ORDER_NUMBER_DIGITS}d}"


def _get_active(db: Session, order_id: int) -> WorkOrder:
    order = db.get(WorkOrder, order_id)
    if not order or not order.IsActive:
        raise NotFound("Work order not found.")
    return order


def _new_order(
    db: Session, *, order_type_id: int, customer_id: int, vehicle_id: int,
    service_type_id: Optional[int], advisor_id: int, odometer: int,
    promised_delivery_at: datetime, advisor_notes: Optional[str],
) -> WorkOrder:
    order = WorkOrder(
        OrderNumber=next_order_number(db, order_type_id),
        OrderTypeID=order_type_id,
        CustomerID=customer_id,
        VehicleID=vehicle_id,
        ServiceTypeID=service_type_id,
        AdvisorID=advisor_id,
        Odometer=odometer,
        PromisedDeliveryAt=promised_delivery_at,
        AdvisorNotes=advisor_notes,
        StatusID=ORDER_PENDING,
        CostTotal=Decimal("0.00"),
        CostTotalWithTax=Decimal("0.00"),
        CompletedWorkItems=0,
        Progress=Decimal("0.00"),
        HasEvidence=False,
        IsActive=True,
    )
    db.add(order)
    return order


def _new_item(order: WorkOrder, description: str, instructions: Optional[str],
              parts_ready: bool = False) -> OrderWorkItem:
    item = OrderWorkItem(
        Description=description,
        Instructions=instructions,
        PartsReady=parts_ready,
        LaborCost=Decimal("0.00"),
        StatusID=WORK_PENDING,
        IsActive=True,
    )
    order.work_items.append(item)
    return item


# -------- Writes --------
def create_order(
    db: Session, *,
    order_type_id: int,
    customer_id: int,
    vehicle_id: int,
    service_type_id: Optional[int],
    advisor_id: int,
    odometer: int,
    promised_delivery_at: datetime,
    advisor_notes: Optional[str] = None,
    work_items: Sequence[Mapping],
) -> dict:
    if odometer is None or odometer < 0:
        raise ValidationError("Odometer must be >= 0.")
    if promised_delivery_at is None:
        raise ValidationError("PromisedDeliveryAt is required.")
    items = clean_work_items(work_items)
    check_references(
        db, order_type_id=order_type_id, customer_id=customer_id,
        vehicle_id=vehicle_id, service_type_id=service_type_id,
    )

    with transaction(db, "create_order"):
        order = _new_order(
            db, order_type_id=order_type_id, customer_id=customer_id, vehicle_id=vehicle_id,
            service_type_id=service_type_id, advisor_id=advisor_id, odometer=odometer,
            promised_delivery_at=promised_delivery_at, advisor_notes=advisor_notes,
        )
        for w in items:
            _new_item(order, w["Description"], w["Instructions"])
        order.TotalWorkItems = len(items)
        db.flush()
        result = {
            "WorkOrderID": order.WorkOrderID,
            "OrderNumber": order.OrderNumber,
            "WorkItemCount": len(items),
        }

    logger.info("Work order %s created (%s work items)", result["OrderNumber"], len(items))
    return result


def create_from_appointment(
    db: Session, *,
    appointment_id: int,
    advisor_id: int,
    odometer: int,
    promised_delivery_at: datetime,
    advisor_notes: Optional[str] = None,
) -> dict:
    """
    Turn an appointment into a work order.

    Each active appointment job becomes an order job and its purchased parts
    move along with ``Transferred`` set, which freezes them. The appointment
    is closed in the same transaction.
    """
    appt = db.get(Appointment, appointment_id)
    if not appt or not appt.IsActive:
        raise NotFound("Appointment not found.")
    source_items = [w for w in appt.work_items if w.IsActive]
    if not source_items:
        raise ValidationError("The appointment has no active work items.")
    if odometer is None or odometer < 0:
        raise ValidationError("Odometer must be >= 0.")

    with transaction(db, "create_order_from_appointment"):
        order = _new_order(
            db, order_type_id=appt.OrderTypeID, customer_id=appt.CustomerID,
            vehicle_id=appt.VehicleID, service_type_id=appt.ServiceTypeID,
            advisor_id=advisor_id, odometer=odometer,
            promised_delivery_at=promised_delivery_at, advisor_notes=advisor_notes,
        )
        transferred = 0
        for src in source_items:
            item = _new_item(order, src.Description, src.Instructions, bool(src.PartsReady))
            for part in list(src.parts):
                part.appointment_work_item = None
                part.order_work_item = item
                part.Transferred = True
                transferred += 1
            src.IsActive = False
        order.TotalWorkItems = len(source_items)
        appt.IsActive = False
        db.flush()
        result = {
            "WorkOrderID": order.WorkOrderID,
            "OrderNumber": order.OrderNumber,
            "AppointmentID": appointment_id,
            "WorkItemCount": len(source_items),
            "TransferredParts": transferred,
        }

    logger.info("Appointment %s converted to order %s (%s parts transferred)",
                appointment_id, result["OrderNumber"], transferred)
    return result


def cancel(db: Session, *, order_id: int) -> dict:
    order = _get_active(db, order_id)
    if order.StatusID == ORDER_DELIVERED:
        raise ConflictError(f"Order {order.OrderNumber} was already delivered.")

    with transaction(db, "cancel_order"):
        order.StatusID = ORDER_CANCELLED
        order.IsActive = False
        cancelled = 0
        for w in order.active_work_items:
            if w.StatusID in (WORK_PENDING, WORK_ASSIGNED):
                w.StatusID = WORK_CANCELLED
                cancelled += 1
        if order.OrderTypeID == ORDER_TYPE_SERVICE:
            reminder_service.reactivate_on_cancel(db, order.VehicleID)
        result = {
            "WorkOrderID": order.WorkOrderID,
            "OrderNumber": order.OrderNumber,
            "CancelledWorkItems": cancelled,
        }

    logger.info("Work order %s cancelled", result["OrderNumber"])
    return result


def deliver(db: Session, *, order_id: int, now: Optional[datetime] = None) -> dict:
    order = _get_active(db, order_id)
    if order.StatusID == ORDER_DELIVERED:
        raise ConflictError(f"Order {order.OrderNumber} was already delivered.")

    pending = [w for w in order.active_work_items if w.StatusID != WORK_COMPLETED]
    if pending:
        raise PreconditionFailed(
            f"{len(pending)} work item(s) are not completed.",
            meta={"WorkItemIDs": [w.OrderWorkItemID for w in pending]},
        )
    if order.OrderTypeID != ORDER_TYPE_WARRANTY and to_money(order.CostTotal) == 0:
        raise PreconditionFailed("Costs must be finalized before delivery.")

    with transaction(db, "deliver_order"):
        order.StatusID = ORDER_DELIVERED
        order.DeliveredAt = now or datetime.now()
        recount(order)
        order.Progress = Decimal("100.00")
        result = {
            "WorkOrderID": order.WorkOrderID,
            "OrderNumber": order.OrderNumber,
            "StatusID": ORDER_DELIVERED,
            "DeliveredAt": order.DeliveredAt,
            "CompletedWorkItems": order.CompletedWorkItems,
            "TotalWorkItems": order.TotalWorkItems,
        }
    logger.info("Work order %s delivered", result["OrderNumber"])

    # Delivery is committed; the reminder is a secondary effect
    reminder_id = None
    try:
        with transaction(db, "reminder_upsert"):
            reminder = reminder_service.upsert_on_delivery(db, order)
            reminder_id = reminder.ReminderID if reminder else None
    except Exception:
        logger.exception("Reminder upsert failed for delivered order %s", result["OrderNumber"])
    result["ReminderID"] = reminder_id
    return result


def add_parts(db: Session, *, work_item_id: int, parts: Sequence[Mapping]) -> dict:
    result = parts_service.add_to_work_item(db, OrderScoped(work_item_id), parts)

    # PartsTotal is computed by the database; re-read the row to see it
    item = db.get(OrderWorkItem, work_item_id)
    db.refresh(item)
    result["PartsTotal"] = to_money(item.PartsTotal)
    return result


def finalize_costs(db: Session, *, order_id: int, labor_costs: Sequence[Mapping]) -> dict:
    order = _get_active(db, order_id)
    if order.StatusID == ORDER_DELIVERED:
        raise ConflictError(f"Order {order.OrderNumber} was already delivered.")

    by_id = {w.OrderWorkItemID: w for w in order.active_work_items}
    updates = []
    for row in labor_costs or []:
        item = by_id.get(row.get("WorkItemID"))
        if item is None:
            raise NotFound(f"Work item {row.get('WorkItemID')} does not belong to order {order.OrderNumber}.")
        try:
            labor = to_money(row.get("LaborCost"))
        except ValueError as e:
            raise ValidationError(str(e))
        if labor < 0:
            raise ValidationError("LaborCost must be >= 0.")
        updates.append((item, labor))

    with transaction(db, "finalize_costs"):
        for item, labor in updates:
            item.LaborCost = labor
        db.flush()
        total = Decimal("0.00")
        for item in by_id.values():
            if item.StatusID == WORK_CANCELLED:
                continue
            db.refresh(item)
            total += to_money(item.LaborCost) + to_money(item.PartsTotal)
        order.CostTotal = to_money(total)
        order.CostTotalWithTax = with_tax(total)
        result = {
            "WorkOrderID": order.WorkOrderID,
            "CostTotal": order.CostTotal,
            "CostTotalWithTax": order.CostTotalWithTax,
        }

    logger.info("Costs finalized for order %s: %s", order_id, result["CostTotal"])
    return result


def save_checklist(db: Session, *, order_id: int, values: Mapping[str, Any]) -> dict:
    order = _get_active(db, order_id)
    unknown = set(values) - set(RATING_FIELDS) - set(CHECK_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown checklist fields: {sorted(unknown)}")

    with transaction(db, "save_checklist"):
        checklist = order.checklist
        if checklist is None:
            checklist = ServiceChecklist(WorkOrderID=order.WorkOrderID)
            db.add(checklist)
        for name in RATING_FIELDS:
            setattr(checklist, name, (values.get(name) or "").strip())
        for name in CHECK_FIELDS:
            setattr(checklist, name, bool(values.get(name, False)))
        db.flush()
        result = {"WorkOrderID": order.WorkOrderID, "ChecklistID": checklist.ChecklistID}
    return result


# -------- Reads --------
def _item_row(w: OrderWorkItem) -> dict:
    return {
        "OrderWorkItemID": w.OrderWorkItemID,
        "Description": w.Description,
        "Technician": _user_name(w.technician, UNASSIGNED),
        "StatusID": w.StatusID,
        "Status": work_status_name(w.StatusID),
        "Color": work_status_color(w.StatusID),
    }


def _open_orders(db: Session, order_type_id: int, advisor_id: Optional[int] = None) -> list[dict]:
    q = db.query(WorkOrder).filter(
        WorkOrder.IsActive == True,  # noqa: E712
        WorkOrder.OrderTypeID == order_type_id,
        WorkOrder.StatusID.in_(OPEN_ORDER_STATUSES),
    )
    if advisor_id is not None:
        q = q.filter(WorkOrder.AdvisorID == advisor_id)
    rows = q.order_by(WorkOrder.PromisedDeliveryAt.asc(), WorkOrder.WorkOrderID.asc()).all()
    return [
        {
            "WorkOrderID": o.WorkOrderID,
            "OrderNumber": o.OrderNumber,
            "Customer": o.customer.FullName,
            "Vehicle": o.vehicle.long_description,
            "Advisor": _user_name(o.advisor),
            "PromisedDeliveryAt": o.PromisedDeliveryAt,
            "StatusID": o.StatusID,
            "Status": ORDER_STATUS_NAMES.get(o.StatusID),
            "Progress": o.Progress,
            "WorkItems": [_item_row(w) for w in o.active_work_items],
        }
        for o in rows
    ]


def list_for_advisor(db: Session, *, order_type_id: int, advisor_id: int) -> list[dict]:
    return _open_orders(db, order_type_id, advisor_id)


def list_for_shop_manager(db: Session, *, order_type_id: int) -> list[dict]:
    return _open_orders(db, order_type_id)


def get_detail(db: Session, *, order_id: int) -> dict:
    o = _get_active(db, order_id)
    c, v = o.customer, o.vehicle
    return {
        "WorkOrderID": o.WorkOrderID,
        "OrderNumber": o.OrderNumber,
        "OrderTypeID": o.OrderTypeID,
        "OrderType": o.order_type.Name,
        "ServiceType": o.service_type.Name if o.service_type else NOT_SPECIFIED,
        "StatusID": o.StatusID,
        "Status": ORDER_STATUS_NAMES.get(o.StatusID),
        "CreatedAt": o.CreatedAt,
        "PromisedDeliveryAt": o.PromisedDeliveryAt,
        "DeliveredAt": o.DeliveredAt,
        "Advisor": _user_name(o.advisor),
        "AdvisorNotes": o.AdvisorNotes,
        "ShopManagerNotes": o.ShopManagerNotes,
        "Customer": {
            "CustomerID": c.CustomerID,
            "FullName": c.FullName,
            "MobilePhone": c.MobilePhone,
            "Email": c.Email,
            "Address": c.full_address,
        },
        "Vehicle": {
            "VehicleID": v.VehicleID,
            "Description": v.long_description,
            "VIN": v.VIN,
            "Plates": v.Plates,
            "Odometer": o.Odometer,
        },
        "CostTotal": o.CostTotal,
        "CostTotalWithTax": o.CostTotalWithTax,
        "TotalWorkItems": o.TotalWorkItems,
        "CompletedWorkItems": o.CompletedWorkItems,
        "Progress": o.Progress,
        "WorkItems": [
            dict(
                _item_row(w),
                Instructions=w.Instructions,
                TechnicianID=w.TechnicianID,
                AssignedAt=w.AssignedAt,
                StartedAt=w.StartedAt,
                EndedAt=w.EndedAt,
                TechnicianComments=w.TechnicianComments,
                ShopManagerComments=w.ShopManagerComments,
                PartsReady=w.PartsReady,
                LaborCost=w.LaborCost,
                PartsTotal=to_money(w.PartsTotal),
            )
            for w in o.active_work_items
        ],
    }


def list_technician_work(db: Session, *, day: Optional[date] = None) -> list[dict]:
    day = day or date.today()
    start = datetime.combine(day, datetime.min.time())
    end = start + timedelta(days=1)
    rows = (
        db.query(OrderWorkItem)
        .join(WorkOrder, OrderWorkItem.WorkOrderID == WorkOrder.WorkOrderID)
        .filter(
            OrderWorkItem.IsActive == True,  # noqa: E712
            WorkOrder.IsActive == True,  # noqa: E712
            or_(
                OrderWorkItem.StatusID.in_(TECHNICIAN_BOARD_STATUSES),
                and_(
                    OrderWorkItem.StatusID == WORK_COMPLETED,
                    OrderWorkItem.EndedAt >= start,
                    OrderWorkItem.EndedAt < end,
                ),
            ),
        )
        .order_by(
            OrderWorkItem.StatusID.asc(),
            WorkOrder.PromisedDeliveryAt.asc(),
            OrderWorkItem.OrderWorkItemID.asc(),
        )
        .all()
    )
    return [
        dict(
            _item_row(w),
            WorkOrderID=w.WorkOrderID,
            OrderNumber=w.order.OrderNumber,
            Vehicle=w.order.vehicle.long_description,
            PromisedDeliveryAt=w.order.PromisedDeliveryAt,
            StartedAt=w.StartedAt,
            EndedAt=w.EndedAt,
        )
        for w in rows
    ]
