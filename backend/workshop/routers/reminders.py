# backend/workshop/routers/reminders.py
from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from ..core.api import ok, list_meta
from ..core.db import get_db
from ..core.security import get_current_user
from ..schemas.reminder import MarkSentIn
from ..services import reminder_service

router = APIRouter(
    prefix="/reminders",
    tags=["reminders"],
    dependencies=[Depends(get_current_user)],
)


@router.get("/pending/{stage}")
def list_pending(stage: int = Path(...), db: Session = Depends(get_db)):
    items = reminder_service.list_pending(db, stage=stage)
    return ok(items, meta=list_meta(items, {"stage": stage}))


@router.get("/detail/{reminder_id}")
def get_reminder(reminder_id: int = Path(..., ge=1), db: Session = Depends(get_db)):
    return ok(reminder_service.get_detail(db, reminder_id=reminder_id))


@router.put("/mark-sent")
def mark_sent(payload: MarkSentIn, db: Session = Depends(get_db)):
    return ok(reminder_service.mark_sent(db, reminder_id=payload.ReminderID, stage=payload.Stage))


@router.get("/summary")
def summary(db: Session = Depends(get_db)):
    return ok(reminder_service.summary(db))
