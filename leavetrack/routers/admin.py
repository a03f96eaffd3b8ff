import datetime as dt
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from leavetrack.database import get_db
from leavetrack.models.user import User
from leavetrack.routers.auth_deps import require_admin
from leavetrack.schemas.admin import AdminStats, EmployeeBrief, EmployeeLeaveSummary, EmployeeList
from leavetrack.services.admin_stats import AdminStatsService

router = APIRouter(prefix="/admin", tags=["admin"])

@router.get("/stats")
def get_stats(
    date: Optional[dt.date] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    stats = AdminStatsService(db).stats(date or dt.date.today())
    return AdminStats(**stats).to_api()

@router.get("/leave_summary")
def get_leave_summary(
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    summary = AdminStatsService(db).leave_summary(year or dt.date.today().year)
    return [EmployeeLeaveSummary(**row).to_api() for row in summary]

@router.get("/absent")
def get_absent_employees(
    date: Optional[dt.date] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    day = date or dt.date.today()
    users = AdminStatsService(db).absent_employees(day)
    return EmployeeList(date=day.isoformat(), employees=[EmployeeBrief.model_validate(u) for u in users]).to_api()

@router.get("/present")
def get_present_employees(
    date: Optional[dt.date] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    day = date or dt.date.today()
    users = AdminStatsService(db).present_employees(day)
    return EmployeeList(date=day.isoformat(), employees=[EmployeeBrief.model_validate(u) for u in users]).to_api()
