import logging
from typing import List, Optional

from leavetrack.core.exceptions import AccessDeniedError, NotFoundError, ValidationError
from leavetrack.core.security import ensure_owner_or_admin, sanitize_input
from leavetrack.models.leave import LeaveStatus
from leavetrack.models.permission import Permission
from leavetrack.models.user import User
from leavetrack.schemas.permission import PermissionCreate, PermissionUpdate
from leavetrack.services.base import BaseService

logger = logging.getLogger(__name__)


class PermissionService(BaseService):
    """Short absences. Same ownership and approval rules as leaves, without any balance impact."""

    def list_permissions(self, current_user: User, user_id: Optional[int] = None, status: Optional[str] = None) -> List[Permission]:
        query = self.db.query(Permission)
        if not current_user.is_admin:
            if user_id is not None and user_id != current_user.id:
                raise AccessDeniedError("Unauthorized: cannot list another user's permissions")
            user_id = current_user.id
        if user_id is not None:
            query = query.filter(Permission.user_id == user_id)
        if status:
            query = query.filter(Permission.status == status)
        return query.order_by(Permission.date.desc(), Permission.start_time).all()

    def get_permission(self, permission_id: int, current_user: User) -> Permission:
        permission = self.db.get(Permission, permission_id)
        if not permission:
            raise NotFoundError(f"Permission {permission_id} not found")
        ensure_owner_or_admin(current_user, permission.user_id)
        return permission

    def _ensure_editable(self, permission: Permission, current_user: User):
        if not current_user.is_admin and permission.status != LeaveStatus.PENDING.value:
            raise AccessDeniedError("Unauthorized: only pending permissions can be modified")

    def create_permission(self, data: PermissionCreate, owner_id: Optional[int], current_user: User) -> Permission:
        if owner_id is None:
            owner_id = current_user.id
        ensure_owner_or_admin(current_user, owner_id)
        if not self.db.get(User, owner_id):
            raise NotFoundError(f"User {owner_id} not found")

        permission = Permission(
            user_id=owner_id,
            date=data.date,
            start_time=data.start_time,
            end_time=data.end_time,
            reason=sanitize_input(data.reason),
            status=LeaveStatus.PENDING.value,
        )
        self.db.add(permission)
        self.commit()
        self.db.refresh(permission)
        logger.info(f"Permission {permission.id} submitted by user {owner_id}")
        return permission

    def update_permission(self, permission_id: int, data: PermissionUpdate, current_user: User) -> Permission:
        permission = self.get_permission(permission_id, current_user)
        self._ensure_editable(permission, current_user)

        changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None or k == "reason"}
        start_time = changes.get("start_time", permission.start_time)
        end_time = changes.get("end_time", permission.end_time)
        if end_time <= start_time:
            raise ValidationError("endTime must be after startTime")

        for field in ("date", "start_time", "end_time"):
            if field in changes:
                setattr(permission, field, changes[field])
        if "reason" in changes:
            permission.reason = sanitize_input(data.reason)

        self.commit()
        self.db.refresh(permission)
        return permission

    def delete_permission(self, permission_id: int, current_user: User):
        permission = self.get_permission(permission_id, current_user)
        self._ensure_editable(permission, current_user)
        self.db.delete(permission)
        self.commit()

    def set_status(self, permission_id: int, status: LeaveStatus, admin: User) -> Permission:
        permission = self.db.get(Permission, permission_id)
        if not permission:
            raise NotFoundError(f"Permission {permission_id} not found")
        if permission.status != LeaveStatus.PENDING.value:
            raise ValidationError(f"Permission already processed ({permission.status})")
        permission.status = status.value
        self.commit()
        self.db.refresh(permission)
        logger.info(f"Permission {permission.id} set to {permission.status} by {admin.email}")
        return permission
