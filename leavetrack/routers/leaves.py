from typing import Optional
from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile
import logging

from leavetrack.core.exceptions import ValidationError
from leavetrack.database import get_db
from leavetrack.models.user import User
from leavetrack.routers.auth_deps import get_current_user, require_admin
from leavetrack.schemas.hydra import collection, item, parse_iri
from leavetrack.schemas.leave import LeaveCreate, LeaveRead, LeaveUpdate, StatusUpdate
from leavetrack.services.certificate_storage import content_disposition, media_type_for
from leavetrack.services.leave_service import LeaveService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/leaves", tags=["leaves"])

CERTIFICATE_FIELDS = ("certificate[]", "certificate")

def _item(leave) -> dict:
    return item("leaves", "Leave", LeaveRead.from_model(leave).to_api())

@router.get("")
def list_leaves(
    user: Optional[str] = None,
    status: Optional[str] = None,
    type: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    leaves = LeaveService(db).list_leaves(current_user, parse_iri(user), status, type)
    return collection("leaves", "Leave", [LeaveRead.from_model(leave).to_api() for leave in leaves])

@router.get("/{leave_id}")
def get_leave(leave_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _item(LeaveService(db).get_leave(leave_id, current_user))

@router.post("", status_code=status.HTTP_201_CREATED)
def create_leave(data: LeaveCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    leave = LeaveService(db).create_leave(data, parse_iri(data.user), current_user)
    return _item(leave)

@router.put("/{leave_id}")
def update_leave(
    leave_id: int,
    data: LeaveUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return _item(LeaveService(db).update_leave(leave_id, data, current_user))

@router.delete("/{leave_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_leave(leave_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    LeaveService(db).delete_leave(leave_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

# Approval workflow
@router.put("/{leave_id}/status")
def update_leave_status(
    leave_id: int,
    data: StatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    return _item(LeaveService(db).set_status(leave_id, data.status, current_user))

# Certificates
@router.post("/{leave_id}/certificate")
async def upload_certificate(
    leave_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    form = await request.form()
    upload = next((form.get(f) for f in CERTIFICATE_FIELDS if isinstance(form.get(f), UploadFile)), None)
    if upload is None:
        raise ValidationError("No certificate file provided", details={"fields": list(CERTIFICATE_FIELDS)})

    content = await upload.read()
    leave = LeaveService(db).attach_certificate(leave_id, upload.filename, content, current_user)
    logger.info(f"Certificate uploaded for leave {leave_id}", extra={"certificate_name": upload.filename})
    return {"id": leave.id, "certificate": leave.certificate}

@router.get("/{leave_id}/certificate")
def download_certificate(leave_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    leave, path = LeaveService(db).certificate_file(leave_id, current_user)
    return FileResponse(
        path,
        media_type=media_type_for(leave.certificate),
        headers={"Content-Disposition": content_disposition(leave.certificate)},
    )

@router.delete("/{leave_id}/certificate", status_code=status.HTTP_204_NO_CONTENT)
def delete_certificate(leave_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    LeaveService(db).remove_certificate(leave_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
