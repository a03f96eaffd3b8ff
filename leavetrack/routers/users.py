from typing import Optional
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from leavetrack.database import get_db
from leavetrack.models.user import User
from leavetrack.core.security import ensure_owner_or_admin
from leavetrack.routers.auth_deps import get_current_user, require_admin
from leavetrack.schemas.auth import UserCreate, UserRead, UserUpdate
from leavetrack.schemas.hydra import collection, item
from leavetrack.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])

def _item(user: User) -> dict:
    return item("users", "User", UserRead.from_model(user).to_api())

@router.get("")
def list_users(
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    users = UserService(db).list_users(search)
    return collection("users", "User", [UserRead.from_model(u).to_api() for u in users])

@router.get("/{user_id}")
def get_user(user_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    ensure_owner_or_admin(current_user, user_id)
    return _item(UserService(db).get_user(user_id))

@router.post("", status_code=status.HTTP_201_CREATED)
def create_user(data: UserCreate, db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    return _item(UserService(db).create_user(data))

@router.put("/{user_id}")
def update_user(
    user_id: int,
    data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    return _item(UserService(db).update_user(user_id, data, current_user))

@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(user_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    UserService(db).delete_user(user_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
