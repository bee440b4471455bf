# backend/workshop/services/report_service.py
"""
Order invoice/report data.

`build_document` collects everything a rendered report shows into plain
dataclasses; `pdf_renderer.ReportComposer` turns the result into a PDF.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional
import logging

from sqlalchemy.orm import Session

from ..core.errors import NotFound
from ..domain.constants import NOT_SPECIFIED, ORDER_STATUS_NAMES, UNASSIGNED, work_status_name
from ..domain.money import tax_of, to_money
from ..models import OrderWorkItem, WorkOrder
from ..models.checklist import CHECK_FIELDS, RATING_FIELDS

logger = logging.getLogger(__name__)


@dataclass
class DocumentHeader:
    order_number: str
    order_type: str
    service_type: str
    created_at: Optional[datetime]
    promised_delivery_at: Optional[datetime]
    delivered_at: Optional[datetime]
    status: str
    advisor: Optional[str]


@dataclass
class CustomerBlock:
    name: str
    tax_id: Optional[str]
    phone: Optional[str]
    email: Optional[str]
    address: str


@dataclass
class VehicleBlock:
    description: str
    vin: Optional[str]
    plates: Optional[str]
    color: Optional[str]
    odometer: int


@dataclass
class PartLine:
    description: str
    quantity: int
    unit_price: Decimal
    total: Decimal


@dataclass
class WorkItemLine:
    description: str
    technician: str
    status: str
    started_at: Optional[datetime]
    ended_at: Optional[datetime]
    duration: Optional[str]
    labor_cost: Decimal
    parts_total: Decimal
    technician_comments: Optional[str]
    parts: List[PartLine] = field(default_factory=list)


@dataclass
class ChecklistBlock:
    ratings: Dict[str, str]
    checks: Dict[str, bool]


@dataclass
class Totals:
    parts_total: Decimal
    labor_total: Decimal
    subtotal: Decimal
    tax: Decimal
    grand_total: Decimal


@dataclass
class OrderDocument:
    header: DocumentHeader
    customer: CustomerBlock
    vehicle: VehicleBlock
    work_items: List[WorkItemLine]
    checklist: Optional[ChecklistBlock]
    advisor_notes: Optional[str]
    shop_manager_notes: Optional[str]
    total_work_items: int
    completed_work_items: int
    progress: Decimal
    totals: Totals


def format_duration(start: Optional[datetime], end: Optional[datetime]) -> Optional[str]:
    """'Xh Ym' between two timestamps, None when either is missing."""
    if start is None or end is None or end < start:
        return None
    minutes = int((end - start).total_seconds() // 60)
    return f"{minutes // 60}h {minutes % 60}m"


def _work_item_line(w: OrderWorkItem) -> WorkItemLine:
    parts = []
    for p in w.parts:
        unit = to_money(p.UnitSalePrice if p.UnitSalePrice is not None else p.UnitCost)
        parts.append(PartLine(
            description=p.Description,
            quantity=p.Quantity,
            unit_price=unit,
            total=to_money(unit * p.Quantity),
        ))
    technician = (w.technician.FullName or w.technician.Username) if w.technician else UNASSIGNED
    return WorkItemLine(
        description=w.Description,
        technician=technician,
        status=work_status_name(w.StatusID),
        started_at=w.StartedAt,
        ended_at=w.EndedAt,
        duration=format_duration(w.StartedAt, w.EndedAt),
        labor_cost=to_money(w.LaborCost),
        parts_total=to_money(w.PartsTotal),
        technician_comments=w.TechnicianComments,
        parts=parts,
    )


def build_document(db: Session, order_id: int) -> OrderDocument:
    order = db.get(WorkOrder, order_id)
    if not order or not order.IsActive:
        raise NotFound("Work order not found.")

    c, v = order.customer, order.vehicle
    items = [_work_item_line(w) for w in order.active_work_items]

    parts_total = to_money(sum((i.parts_total for i in items), Decimal("0")))
    labor_total = to_money(sum((i.labor_cost for i in items), Decimal("0")))
    subtotal = to_money(parts_total + labor_total)
    tax = tax_of(subtotal)

    checklist = None
    if order.checklist is not None:
        checklist = ChecklistBlock(
            ratings={name: getattr(order.checklist, name) or "" for name in RATING_FIELDS},
            checks={name: bool(getattr(order.checklist, name)) for name in CHECK_FIELDS},
        )
    else:
        logger.debug("Order %s has no checklist", order.OrderNumber)

    advisor = order.advisor
    return OrderDocument(
        header=DocumentHeader(
            order_number=order.OrderNumber,
            order_type=order.order_type.Name,
            service_type=order.service_type.Name if order.service_type else NOT_SPECIFIED,
            created_at=order.CreatedAt,
            promised_delivery_at=order.PromisedDeliveryAt,
            delivered_at=order.DeliveredAt,
            status=ORDER_STATUS_NAMES.get(order.StatusID, "Unknown"),
            advisor=(advisor.FullName or advisor.Username) if advisor else None,
        ),
        customer=CustomerBlock(
            name=c.FullName,
            tax_id=c.TaxID,
            phone=c.MobilePhone or c.HomePhone,
            email=c.Email,
            address=c.full_address,
        ),
        vehicle=VehicleBlock(
            description=v.description,
            vin=v.VIN,
            plates=v.Plates,
            color=v.Color,
            odometer=order.Odometer or 0,
        ),
        work_items=items,
        checklist=checklist,
        advisor_notes=order.AdvisorNotes,
        shop_manager_notes=order.ShopManagerNotes,
        total_work_items=order.TotalWorkItems or 0,
        completed_work_items=order.CompletedWorkItems or 0,
        progress=to_money(order.Progress),
        totals=Totals(
            parts_total=parts_total,
            labor_total=labor_total,
            subtotal=subtotal,
            tax=tax,
            grand_total=to_money(subtotal + tax),
        ),
    )
