# backend/workshop/services/work_item_service.py
"""
Technician job progression on order work items.

Pending -> Assigned -> In progress <-> Paused -> Completed. Every step is one
transaction and keeps the parent order's status and counters in step.
"""
from __future__ import annotations
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
import logging

from sqlalchemy.orm import Session

from ..core.db import transaction
from ..core.errors import ConflictError, NotFound, ValidationError
from ..domain.constants import (
    OPEN_ORDER_STATUSES, ORDER_ASSIGNED, ORDER_IN_PROGRESS, ORDER_PENDING,
    WORK_ASSIGNED, WORK_COMPLETED, WORK_IN_PROGRESS, WORK_PAUSED, WORK_PENDING,
    work_status_name,
)
from ..models import AppUser, OrderWorkItem, WorkOrder

logger = logging.getLogger(__name__)


def recount(order: WorkOrder) -> None:
    """Refresh TotalWorkItems / CompletedWorkItems / Progress from active items."""
    active = order.active_work_items
    total = len(active)
    done = sum(1 for w in active if w.StatusID == WORK_COMPLETED)
    order.TotalWorkItems = total
    order.CompletedWorkItems = done
    if total:
        order.Progress = (Decimal(done) * 100 / Decimal(total)).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )
    else:
        order.Progress = Decimal("0.00")


def _get_open_item(db: Session, work_item_id: int) -> OrderWorkItem:
    item = db.get(OrderWorkItem, work_item_id)
    if not item or not item.IsActive:
        raise NotFound("Work item not found.")
    order = item.order
    if not order.IsActive or order.StatusID not in OPEN_ORDER_STATUSES:
        raise ConflictError(f"Order {order.OrderNumber} is closed.")
    return item


def _refuse(item: OrderWorkItem, action: str):
    raise ConflictError(
        f"Cannot {action} a work item in status '{work_status_name(item.StatusID)}'."
    )


def _result(item: OrderWorkItem) -> dict:
    return {
        "OrderWorkItemID": item.OrderWorkItemID,
        "WorkOrderID": item.WorkOrderID,
        "StatusID": item.StatusID,
        "Status": work_status_name(item.StatusID),
        "TechnicianID": item.TechnicianID,
        "AssignedAt": item.AssignedAt,
        "StartedAt": item.StartedAt,
        "EndedAt": item.EndedAt,
    }


def assign_technician(
    db: Session, *, work_item_id: int, technician_id: int,
    manager_comments: Optional[str] = None, now: Optional[datetime] = None,
) -> dict:
    item = _get_open_item(db, work_item_id)
    if item.StatusID not in (WORK_PENDING, WORK_ASSIGNED):
        _refuse(item, "assign")

    tech = db.get(AppUser, technician_id)
    if not tech or not tech.IsActive:
        raise NotFound("Technician not found.")
    if tech.Role != "technician":
        raise ValidationError(f"User '{tech.Username}' is not a technician.")

    with transaction(db, "assign_technician"):
        item.TechnicianID = technician_id
        item.AssignedAt = now or datetime.now()
        item.StatusID = WORK_ASSIGNED
        if manager_comments:
            item.ShopManagerComments = manager_comments
        if item.order.StatusID == ORDER_PENDING:
            item.order.StatusID = ORDER_ASSIGNED
        recount(item.order)
        result = _result(item)

    logger.info("Work item %s assigned to technician %s", work_item_id, technician_id)
    return result


def start(db: Session, *, work_item_id: int, now: Optional[datetime] = None) -> dict:
    item = _get_open_item(db, work_item_id)
    if item.StatusID not in (WORK_ASSIGNED, WORK_PAUSED):
        _refuse(item, "start")

    with transaction(db, "start_work_item"):
        if item.StartedAt is None:
            item.StartedAt = now or datetime.now()
        item.StatusID = WORK_IN_PROGRESS
        item.order.StatusID = ORDER_IN_PROGRESS
        recount(item.order)
        result = _result(item)

    logger.info("Work item %s started", work_item_id)
    return result


def pause(
    db: Session, *, work_item_id: int, comments: Optional[str] = None,
) -> dict:
    item = _get_open_item(db, work_item_id)
    if item.StatusID != WORK_IN_PROGRESS:
        _refuse(item, "pause")

    with transaction(db, "pause_work_item"):
        item.StatusID = WORK_PAUSED
        if comments:
            item.TechnicianComments = comments
        recount(item.order)
        result = _result(item)

    logger.info("Work item %s paused", work_item_id)
    return result


def complete(
    db: Session, *, work_item_id: int, comments: Optional[str] = None,
    now: Optional[datetime] = None,
) -> dict:
    item = _get_open_item(db, work_item_id)
    if item.StatusID != WORK_IN_PROGRESS:
        _refuse(item, "complete")

    with transaction(db, "complete_work_item"):
        item.StatusID = WORK_COMPLETED
        item.EndedAt = now or datetime.now()
        if comments:
            item.TechnicianComments = comments
        recount(item.order)
        result = _result(item)
        result["Progress"] = item.order.Progress

    logger.info("Work item %s completed", work_item_id)
    return result
