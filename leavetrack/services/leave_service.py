"""
Leave Service Layer

Leave requests from submission to approval:
- employees create and edit their own requests while they are pending
- administrators approve or reject; approval deducts the yearly balance
- an optional certificate file can be attached to a request
"""
import logging
import math
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from leavetrack.core.exceptions import AccessDeniedError, NotFoundError, ValidationError
from leavetrack.core.security import ensure_owner_or_admin, sanitize_input
from leavetrack.models.holiday import Holiday
from leavetrack.models.leave import Leave, LeaveStatus, LeaveType
from leavetrack.models.user import User
from leavetrack.schemas.leave import LeaveCreate, LeaveUpdate
from leavetrack.services.base import BaseService
from leavetrack.services.certificate_storage import CertificateStorage
from leavetrack.services.leave_balance import LeaveBalanceManager
from leavetrack.services.working_days import calculate_working_days

logger = logging.getLogger(__name__)


class LeaveService(BaseService):

    def __init__(self, db: Session, storage: Optional[CertificateStorage] = None):
        super().__init__(db)
        self.storage = storage or CertificateStorage()

    # --- Queries ---

    def list_leaves(
        self,
        current_user: User,
        user_id: Optional[int] = None,
        status: Optional[str] = None,
        leave_type: Optional[str] = None,
    ) -> List[Leave]:
        query = self.db.query(Leave)
        if not current_user.is_admin:
            if user_id is not None and user_id != current_user.id:
                raise AccessDeniedError("Unauthorized: cannot list another user's leaves")
            user_id = current_user.id
        if user_id is not None:
            query = query.filter(Leave.user_id == user_id)
        if status:
            query = query.filter(Leave.status == status)
        if leave_type:
            query = query.filter(Leave.type == leave_type)
        return query.order_by(Leave.start_date.desc(), Leave.id.desc()).all()

    def get_leave(self, leave_id: int, current_user: User) -> Leave:
        leave = self.db.get(Leave, leave_id)
        if not leave:
            raise NotFoundError(f"Leave {leave_id} not found")
        ensure_owner_or_admin(current_user, leave.user_id)
        return leave

    # --- Mutations ---

    def _count_days(self, leave: Leave) -> Decimal:
        holidays = [h.date for h in self.db.query(Holiday).filter(
            Holiday.date >= leave.start_date,
            Holiday.date <= leave.end_date
        ).all()]
        return calculate_working_days(leave.start_date, leave.end_date, holidays, leave.half_day_options or [])

    def _resolve_owner(self, requested_user_id: Optional[int], current_user: User) -> int:
        if requested_user_id is None:
            return current_user.id
        ensure_owner_or_admin(current_user, requested_user_id)
        if not self.db.get(User, requested_user_id):
            raise NotFoundError(f"User {requested_user_id} not found")
        return requested_user_id

    def _ensure_editable(self, leave: Leave, current_user: User):
        ensure_owner_or_admin(current_user, leave.user_id)
        if not current_user.is_admin and leave.status != LeaveStatus.PENDING.value:
            raise AccessDeniedError("Unauthorized: only pending leaves can be modified")

    def create_leave(self, data: LeaveCreate, owner_id: Optional[int], current_user: User) -> Leave:
        leave = Leave(
            user_id=self._resolve_owner(owner_id, current_user),
            type=data.type.value,
            start_date=data.start_date,
            end_date=data.end_date,
            reason=sanitize_input(data.reason),
            half_day_options=[d.isoformat() for d in data.half_day_options],
            status=LeaveStatus.PENDING.value,
        )
        leave.total_days = data.total_days if data.total_days is not None else self._count_days(leave)
        if leave.total_days <= 0:
            raise ValidationError("The requested period contains no working day")

        self.db.add(leave)
        self.commit()
        self.db.refresh(leave)
        logger.info(
            f"Leave {leave.id} submitted by user {leave.user_id}",
            extra={"leave_id": leave.id, "type": leave.type, "total_days": str(leave.total_days)}
        )
        return leave

    def update_leave(self, leave_id: int, data: LeaveUpdate, current_user: User) -> Leave:
        leave = self.get_leave(leave_id, current_user)
        self._ensure_editable(leave, current_user)

        changes = data.model_dump(exclude_unset=True)
        start_date = data.start_date or leave.start_date
        end_date = data.end_date or leave.end_date
        if end_date < start_date:
            raise ValidationError("endDate must be on or after startDate")

        if data.type is not None:
            leave.type = data.type.value
        leave.start_date = start_date
        leave.end_date = end_date
        if "reason" in changes:
            leave.reason = sanitize_input(data.reason)
        if data.half_day_options is not None:
            leave.half_day_options = [d.isoformat() for d in data.half_day_options]

        if data.total_days is not None:
            leave.total_days = data.total_days
        elif {"start_date", "end_date", "half_day_options"} & changes.keys():
            leave.total_days = self._count_days(leave)

        self.commit()
        self.db.refresh(leave)
        return leave

    def delete_leave(self, leave_id: int, current_user: User):
        leave = self.get_leave(leave_id, current_user)
        self._ensure_editable(leave, current_user)
        stored = leave.certificate_path
        self.db.delete(leave)
        self.commit()
        self.storage.delete(stored)
        logger.info(f"Leave {leave_id} deleted by user {current_user.id}")

    def set_status(self, leave_id: int, status: LeaveStatus, admin: User) -> Leave:
        """
        Approve or reject a pending leave. Approval of paid or sick leave
        deducts whole days from the balance of the year the leave starts in,
        in the same commit as the status change.
        """
        leave = self.db.get(Leave, leave_id)
        if not leave:
            raise NotFoundError(f"Leave {leave_id} not found")
        if leave.status != LeaveStatus.PENDING.value:
            raise ValidationError(f"Leave already processed ({leave.status})")
        if status == LeaveStatus.PENDING:
            return leave

        if status == LeaveStatus.APPROVED:
            pool = LeaveType(leave.type).balance_pool
            if pool is not None:
                days = math.ceil(Decimal(leave.total_days))
                LeaveBalanceManager(self.db).deduct(
                    leave.user_id, leave.start_date.year, days, pool, commit=False
                )

        leave.status = status.value
        self.commit()
        self.db.refresh(leave)
        logger.info(
            f"Leave {leave.id} set to {leave.status} by {admin.email}",
            extra={"leave_id": leave.id, "status": leave.status, "admin_id": admin.id}
        )
        return leave

    # --- Certificates ---

    def attach_certificate(self, leave_id: int, filename: str, content: bytes, current_user: User) -> Leave:
        leave = self.get_leave(leave_id, current_user)
        self._ensure_editable(leave, current_user)

        previous = leave.certificate_path
        leave.certificate_path = self.storage.save(leave.id, filename, content)
        leave.certificate = filename
        self.commit()
        self.storage.delete(previous)
        self.db.refresh(leave)
        return leave

    def certificate_file(self, leave_id: int, current_user: User):
        leave = self.get_leave(leave_id, current_user)
        if not leave.certificate_path:
            raise NotFoundError(f"Leave {leave_id} has no certificate")
        return leave, self.storage.path_for(leave.certificate_path)

    def remove_certificate(self, leave_id: int, current_user: User) -> Leave:
        leave = self.get_leave(leave_id, current_user)
        self._ensure_editable(leave, current_user)
        if not leave.certificate_path:
            raise NotFoundError(f"Leave {leave_id} has no certificate")
        stored = leave.certificate_path
        leave.certificate = None
        leave.certificate_path = None
        self.commit()
        self.storage.delete(stored)
        self.db.refresh(leave)
        return leave
