# backend/workshop/routers/parts.py
from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from ..core.api import ok
from ..core.db import get_db
from ..core.security import get_current_user
from ..domain.scopes import scope_for
from ..schemas.parts import AddPartsIn, SalePriceIn
from ..services import parts_service

router = APIRouter(
    prefix="/parts",
    tags=["parts"],
    dependencies=[Depends(get_current_user)],
)


@router.post("/", status_code=201)
def add_parts(payload: AddPartsIn, db: Session = Depends(get_db)):
    data = parts_service.add_to_work_item(
        db,
        scope_for(payload.WorkItemID, payload.Order),
        [p.model_dump() for p in payload.Parts],
    )
    return ok(data, status_code=201)


@router.put("/work-item/{work_item_id}/ready")
def mark_ready(
    work_item_id: int = Path(..., ge=1),
    order: bool = Query(False, description="true = order work item, false = appointment work item"),
    db: Session = Depends(get_db),
):
    return ok(parts_service.mark_ready(db, scope_for(work_item_id, order)))


@router.get("/work-item/{work_item_id}")
def list_for_work_item(
    work_item_id: int = Path(..., ge=1),
    order: bool = Query(False),
    db: Session = Depends(get_db),
):
    return ok(parts_service.list_for_work_item(db, scope_for(work_item_id, order)))


@router.get("/appointment/{appointment_id}")
def list_for_appointment(appointment_id: int = Path(..., ge=1), db: Session = Depends(get_db)):
    return ok(parts_service.list_for_appointment(db, appointment_id=appointment_id))


@router.delete("/{part_id}")
def remove_part(part_id: int = Path(..., ge=1), db: Session = Depends(get_db)):
    return ok(parts_service.remove(db, part_id=part_id))


@router.put("/{part_id}/sale-price")
def update_sale_price(payload: SalePriceIn, part_id: int = Path(..., ge=1), db: Session = Depends(get_db)):
    return ok(parts_service.update_sale_price(db, part_id=part_id, sale_price=payload.UnitSalePrice))
