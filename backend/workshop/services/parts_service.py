# backend/workshop/services/parts_service.py
from __future__ import annotations
from decimal import Decimal
from typing import Mapping, Optional, Sequence, Union
import logging

from sqlalchemy.orm import Session

from ..core.db import transaction
from ..core.errors import ConflictError, NotFound, ValidationError
from ..domain.constants import WORK_CANCELLED
from ..domain.money import to_money
from ..domain.scopes import AppointmentScoped, OrderScoped, WorkItemScope
from ..models import Appointment, AppointmentWorkItem, OrderWorkItem, PurchasedPart

logger = logging.getLogger(__name__)

WorkItem = Union[AppointmentWorkItem, OrderWorkItem]


def _find_item(db: Session, scope: WorkItemScope) -> Optional[WorkItem]:
    if isinstance(scope, OrderScoped):
        return db.get(OrderWorkItem, scope.work_item_id)
    if isinstance(scope, AppointmentScoped):
        return db.get(AppointmentWorkItem, scope.work_item_id)
    raise TypeError(f"unknown work item scope: {scope!r}")


def resolve_item(db: Session, scope: WorkItemScope) -> WorkItem:
    """Active work item behind ``scope``, ready to take parts."""
    item = _find_item(db, scope)
    if not item or not item.IsActive:
        raise NotFound("Work item not found.")
    if isinstance(scope, AppointmentScoped):
        if not item.appointment.IsActive:
            raise ValidationError("The appointment for this work item is no longer active.")
    elif item.StatusID == WORK_CANCELLED:
        raise ValidationError("Cannot add parts to a cancelled work item.")
    return item


def _clean_parts(parts: Optional[Sequence[Mapping]]) -> list[dict]:
    if not parts:
        raise ValidationError("At least one part is required.")
    cleaned = []
    for i, p in enumerate(parts, start=1):
        desc = (p.get("Description") or "").strip()
        if not desc:
            raise ValidationError(f"Part {i}: Description is required.")
        qty = p.get("Quantity")
        if qty is None or int(qty) <= 0:
            raise ValidationError(f"Part {i}: Quantity must be > 0.")
        try:
            cost = to_money(p.get("UnitCost"))
            sale = p.get("UnitSalePrice")
            sale = to_money(sale) if sale is not None else None
        except ValueError as e:
            raise ValidationError(f"Part {i}: {e}")
        if cost <= 0:
            raise ValidationError(f"Part {i}: UnitCost must be > 0.")
        if sale is not None and sale <= 0:
            raise ValidationError(f"Part {i}: UnitSalePrice must be > 0.")
        cleaned.append({
            "Description": desc, "Quantity": int(qty), "UnitCost": cost, "UnitSalePrice": sale,
        })
    return cleaned


def part_row(p: PurchasedPart) -> dict:
    return {
        "PurchasedPartID": p.PurchasedPartID,
        "Description": p.Description,
        "Quantity": p.Quantity,
        "UnitCost": to_money(p.UnitCost),
        "UnitSalePrice": to_money(p.UnitSalePrice) if p.UnitSalePrice is not None else None,
        "TotalCost": to_money(p.total_cost),
        "TotalSaleValue": to_money(p.total_sale_value) if p.UnitSalePrice is not None else None,
        "PurchasedAt": p.PurchasedAt,
        "Transferred": p.Transferred,
    }


def _get_part(db: Session, part_id: int) -> PurchasedPart:
    part = db.get(PurchasedPart, part_id)
    if not part:
        raise NotFound("Part not found.")
    if part.Transferred:
        raise ConflictError("Part was transferred to a work order and can no longer change.")
    return part


# -------- Writes --------
def add_to_work_item(db: Session, scope: WorkItemScope, parts: Sequence[Mapping]) -> dict:
    rows = _clean_parts(parts)
    item = resolve_item(db, scope)

    with transaction(db, "add_parts"):
        added = []
        for r in rows:
            part = PurchasedPart(Transferred=False, **r)
            if isinstance(scope, OrderScoped):
                part.OrderWorkItemID = scope.work_item_id
            else:
                part.AppointmentWorkItemID = scope.work_item_id
            db.add(part)
            added.append(part)
        db.flush()
        result = {
            "WorkItemID": scope.work_item_id,
            "Order": isinstance(scope, OrderScoped),
            "Parts": [part_row(p) for p in added],
            "TotalCost": to_money(sum((p.total_cost for p in added), Decimal("0"))),
        }

    logger.info("%s parts added to %s %s", len(rows), type(item).__name__, scope.work_item_id)
    return result


def mark_ready(db: Session, scope: WorkItemScope) -> dict:
    item = resolve_item(db, scope)
    with transaction(db, "mark_parts_ready"):
        item.PartsReady = True
    return {"WorkItemID": scope.work_item_id, "PartsReady": True}


def remove(db: Session, *, part_id: int) -> dict:
    part = _get_part(db, part_id)
    owner = part.order_work_item or part.appointment_work_item

    with transaction(db, "remove_part"):
        db.delete(part)
        db.flush()
        if owner is not None:
            remaining = (
                db.query(PurchasedPart)
                .filter(
                    (PurchasedPart.OrderWorkItemID == owner.OrderWorkItemID)
                    if isinstance(owner, OrderWorkItem)
                    else (PurchasedPart.AppointmentWorkItemID == owner.AppointmentWorkItemID)
                )
                .count()
            )
            if remaining == 0:
                owner.PartsReady = False

    logger.info("Part %s removed", part_id)
    return {"PurchasedPartID": part_id, "Deleted": True}


def update_sale_price(db: Session, *, part_id: int, sale_price) -> dict:
    try:
        price = to_money(sale_price)
    except ValueError as e:
        raise ValidationError(str(e))
    if price <= 0:
        raise ValidationError("UnitSalePrice must be > 0.")
    part = _get_part(db, part_id)

    with transaction(db, "update_sale_price"):
        part.UnitSalePrice = price
        result = part_row(part)
    return result


# -------- Reads --------
def list_for_work_item(db: Session, scope: WorkItemScope) -> dict:
    item = _find_item(db, scope)
    if not item or not item.IsActive:
        raise NotFound("Work item not found.")
    parts = list(item.parts)
    total_cost = to_money(sum((p.total_cost for p in parts), Decimal("0")))
    if all(p.UnitSalePrice is not None for p in parts):
        total_sale = to_money(sum((p.total_sale_value for p in parts), Decimal("0")))
    else:
        total_sale = None
    return {
        "WorkItemID": scope.work_item_id,
        "Order": isinstance(scope, OrderScoped),
        "Description": item.Description,
        "PartsReady": item.PartsReady,
        "Parts": [part_row(p) for p in parts],
        "TotalCost": total_cost,
        "TotalSaleValue": total_sale,
    }


def list_for_appointment(db: Session, *, appointment_id: int) -> dict:
    appt = db.get(Appointment, appointment_id)
    if not appt or not appt.IsActive:
        raise NotFound("Appointment not found.")
    items = [
        {
            "AppointmentWorkItemID": w.AppointmentWorkItemID,
            "Description": w.Description,
            "PartsReady": w.PartsReady,
            "Parts": [part_row(p) for p in w.parts],
        }
        for w in appt.work_items if w.IsActive
    ]
    return {"AppointmentID": appointment_id, "WorkItems": items}
