from typing import Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
import logging

from leavetrack.core.exceptions import AccessDeniedError
from leavetrack.database import get_db
from leavetrack.models.user import User
from leavetrack.core.security import ensure_owner_or_admin
from leavetrack.routers.auth_deps import get_current_user, require_admin
from leavetrack.schemas.hydra import collection, item, parse_iri
from leavetrack.schemas.leave_balance import (
    CarryOverRequest,
    DeductionRequest,
    LeaveBalanceCreate,
    LeaveBalanceRead,
    LeaveBalanceUpdate,
)
from leavetrack.services.leave_balance import LeaveBalanceManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/leave_balances", tags=["leave-balances"])

def _item(balance) -> dict:
    return item("leave_balances", "LeaveBalance", LeaveBalanceRead.from_model(balance).to_api())

@router.get("")
def list_leave_balances(
    user: Optional[str] = None,
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    user_id = parse_iri(user)
    if not current_user.is_admin:
        if user_id is not None and user_id != current_user.id:
            raise AccessDeniedError("Unauthorized: cannot read another user's balances")
        user_id = current_user.id
    balances = LeaveBalanceManager(db).list_balances(user_id, year)
    return collection("leave_balances", "LeaveBalance", [LeaveBalanceRead.from_model(b).to_api() for b in balances])

@router.get("/{balance_id}")
def get_leave_balance(balance_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    balance = LeaveBalanceManager(db).get_balance(balance_id)
    ensure_owner_or_admin(current_user, balance.user_id)
    return _item(balance)

@router.post("", status_code=status.HTTP_201_CREATED)
def create_leave_balance(
    data: LeaveBalanceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """
    Full-year balance by default; prorated (idempotent) when monthsWorked or prorate is given.
    """
    manager = LeaveBalanceManager(db)
    user_id = parse_iri(data.user)
    if data.prorate or data.months_worked is not None:
        balance = manager.create_prorated_balance(user_id, data.year, data.months_worked)
    else:
        balance = manager.create_annual_balance(user_id, data.year)
    return _item(balance)

@router.put("/{balance_id}")
def update_leave_balance(
    balance_id: int,
    data: LeaveBalanceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """
    Only carriedOverToNextYear is applied; other submitted fields are ignored.
    """
    balance = LeaveBalanceManager(db).apply_balance_update(balance_id, data.carried_over_to_next_year)
    return _item(balance)

@router.post("/carry_over")
def carry_over_leaves(
    data: CarryOverRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    manager = LeaveBalanceManager(db)
    user_id = parse_iri(data.user)
    next_balance = manager.carry_over(user_id, data.from_year, data.days_to_carry_over)
    current = manager.get_yearly_balance(user_id, data.from_year)
    logger.info(
        f"Carried over {data.days_to_carry_over} day(s) from {data.from_year} for user {user_id}",
        extra={"admin_id": current_user.id}
    )
    return {"fromBalance": _item(current), "toBalance": _item(next_balance)}

@router.post("/deduct")
def deduct_leave(
    data: DeductionRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    balance = LeaveBalanceManager(db).deduct(parse_iri(data.user), data.year, data.days, data.leave_type)
    return _item(balance)
