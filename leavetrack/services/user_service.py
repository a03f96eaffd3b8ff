import logging
from typing import List, Optional

from sqlalchemy import or_

from leavetrack.core.exceptions import ConflictError, NotFoundError, ValidationError
from leavetrack.core.security import sanitize_input
from leavetrack.models.user import User, UserRole
from leavetrack.schemas.auth import UserCreate, UserUpdate
from leavetrack.services import auth as auth_service
from leavetrack.services.base import BaseService

logger = logging.getLogger(__name__)


class UserService(BaseService):

    def authenticate(self, email: str, password: str) -> Optional[User]:
        user = self.db.query(User).filter(User.email == email).first()
        if not user or not auth_service.verify_password(password, user.hashed_password):
            return None
        return user

    def list_users(self, search: Optional[str] = None) -> List[User]:
        query = self.db.query(User)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
                User.email.ilike(pattern),
            ))
        return query.order_by(User.last_name, User.first_name).all()

    def get_user(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if not user:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def _ensure_email_free(self, email: str, exclude_id: Optional[int] = None):
        query = self.db.query(User).filter(User.email == email)
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        if query.first():
            raise ConflictError(f"A user with email {email} already exists")

    def create_user(self, data: UserCreate) -> User:
        self._ensure_email_free(data.email)
        user = User(
            email=data.email,
            hashed_password=auth_service.get_password_hash(data.password),
            first_name=sanitize_input(data.first_name),
            last_name=sanitize_input(data.last_name),
            department=sanitize_input(data.department),
            hire_date=data.hire_date,
            role=UserRole.ADMIN if data.is_admin else UserRole.EMPLOYEE,
            is_active=data.status == "active",
        )
        self.db.add(user)
        self.commit()
        self.db.refresh(user)
        logger.info(f"Created user {user.email}", extra={"user_id": user.id, "role": user.role.value})
        return user

    def update_user(self, user_id: int, data: UserUpdate, acting_user: User) -> User:
        user = self.get_user(user_id)
        changes = data.model_dump(exclude_unset=True)

        if user.id == acting_user.id and (changes.get("is_admin") is False or changes.get("status") == "inactive"):
            raise ValidationError("Administrators cannot demote or deactivate themselves")
        if changes.get("email"):
            self._ensure_email_free(changes["email"], exclude_id=user.id)
            user.email = changes["email"]
        if changes.get("password"):
            user.hashed_password = auth_service.get_password_hash(changes["password"])
        for field in ("first_name", "last_name", "department"):
            if field in changes and changes[field] is not None:
                setattr(user, field, sanitize_input(changes[field]))
        if "hire_date" in changes:
            user.hire_date = changes["hire_date"]
        if changes.get("is_admin") is not None:
            user.role = UserRole.ADMIN if changes["is_admin"] else UserRole.EMPLOYEE
        if changes.get("status") is not None:
            user.is_active = changes["status"] == "active"

        self.commit()
        self.db.refresh(user)
        return user

    def delete_user(self, user_id: int, acting_user: User):
        user = self.get_user(user_id)
        if user.id == acting_user.id:
            raise ValidationError("Administrators cannot delete their own account")
        self.db.delete(user)
        self.commit()
        logger.info(f"Deleted user {user_id}", extra={"admin_id": acting_user.id})
