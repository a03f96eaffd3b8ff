from typing import Optional
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from leavetrack.database import get_db
from leavetrack.models.user import User
from leavetrack.routers.auth_deps import get_current_user, require_admin
from leavetrack.schemas.hydra import collection, item, parse_iri
from leavetrack.schemas.leave import StatusUpdate
from leavetrack.schemas.permission import PermissionCreate, PermissionRead, PermissionUpdate
from leavetrack.services.permission_service import PermissionService

router = APIRouter(prefix="/permissions", tags=["permissions"])

def _item(permission) -> dict:
    return item("permissions", "Permission", PermissionRead.from_model(permission).to_api())

@router.get("")
def list_permissions(
    user: Optional[str] = None,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    permissions = PermissionService(db).list_permissions(current_user, parse_iri(user), status)
    return collection("permissions", "Permission", [PermissionRead.from_model(p).to_api() for p in permissions])

@router.get("/{permission_id}")
def get_permission(permission_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _item(PermissionService(db).get_permission(permission_id, current_user))

@router.post("", status_code=status.HTTP_201_CREATED)
def create_permission(data: PermissionCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _item(PermissionService(db).create_permission(data, parse_iri(data.user), current_user))

@router.put("/{permission_id}")
def update_permission(
    permission_id: int,
    data: PermissionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return _item(PermissionService(db).update_permission(permission_id, data, current_user))

@router.delete("/{permission_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_permission(permission_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    PermissionService(db).delete_permission(permission_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@router.put("/{permission_id}/status")
def update_permission_status(
    permission_id: int,
    data: StatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    return _item(PermissionService(db).set_status(permission_id, data.status, current_user))
