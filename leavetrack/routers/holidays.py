from typing import Optional
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import extract
from sqlalchemy.orm import Session
import logging

from leavetrack.core.exceptions import ConflictError, NotFoundError
from leavetrack.database import get_db
from leavetrack.models.holiday import Holiday
from leavetrack.models.user import User
from leavetrack.routers.auth_deps import get_current_user, require_admin
from leavetrack.schemas.holiday import HolidayCreate, HolidayRead
from leavetrack.schemas.hydra import collection, item

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/holidays", tags=["holidays"])

@router.get("")
def list_holidays(year: Optional[int] = None, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    query = db.query(Holiday)
    if year is not None:
        query = query.filter(extract("year", Holiday.date) == year)
    holidays = query.order_by(Holiday.date).all()
    return collection("holidays", "Holiday", [HolidayRead.model_validate(h).to_api() for h in holidays])

@router.post("", status_code=status.HTTP_201_CREATED)
def create_holiday(data: HolidayCreate, db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    if db.query(Holiday).filter(Holiday.date == data.date).first():
        raise ConflictError(f"A holiday already exists on {data.date.isoformat()}")
    holiday = Holiday(date=data.date, name=data.name)
    db.add(holiday)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(holiday)
    logger.info(f"Holiday added: {holiday.name} ({holiday.date})")
    return item("holidays", "Holiday", HolidayRead.model_validate(holiday).to_api())

@router.delete("/{holiday_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_holiday(holiday_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    holiday = db.get(Holiday, holiday_id)
    if not holiday:
        raise NotFoundError(f"Holiday {holiday_id} not found")
    db.delete(holiday)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    return Response(status_code=status.HTTP_204_NO_CONTENT)
