# backend/workshop/routers/reports.py
import base64
from functools import lru_cache

from fastapi import APIRouter, Depends, Path, Response
from sqlalchemy.orm import Session

from ..core.api import ok
from ..core.config import report_config_from_env
from ..core.db import get_db
from ..core.security import get_current_user
from ..services.pdf_renderer import ReportComposer
from ..services.report_service import build_document

router = APIRouter(
    prefix="/reports",
    tags=["reports"],
    dependencies=[Depends(get_current_user)],
)


@lru_cache(maxsize=1)
def get_composer() -> ReportComposer:
    return ReportComposer(report_config_from_env())


@router.get("/orders/{order_id}/download")
def download_order_report(
    order_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    composer: ReportComposer = Depends(get_composer),
):
    document = build_document(db, order_id)
    pdf = composer.render(document)
    filename = f"{document.header.order_number}.pdf"
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/orders/{order_id}/preview")
def preview_order_report(
    order_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    composer: ReportComposer = Depends(get_composer),
):
    document = build_document(db, order_id)
    pdf = composer.render(document)
    return ok({
        "OrderNumber": document.header.order_number,
        "Size": len(pdf),
        "Base64": base64.b64encode(pdf).decode("ascii"),
    })


@router.post("/orders/{order_id}/save", status_code=201)
def save_order_report(
    order_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    composer: ReportComposer = Depends(get_composer),
):
    document = build_document(db, order_id)
    path = composer.save(document)
    return ok({"OrderNumber": document.header.order_number, "Path": path}, status_code=201)
