from pydantic import model_validator
import datetime as dt
from typing import Optional, Union

from leavetrack.models.permission import Permission
from leavetrack.schemas.hydra import CamelModel, iri

class PermissionRead(CamelModel):
    id: int
    user: str
    user_id: int
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    reason: Optional[str] = None
    status: str
    created_at: Optional[dt.datetime] = None

    @classmethod
    def from_model(cls, permission: Permission) -> "PermissionRead":
        return cls(
            id=permission.id,
            user=iri("users", permission.user_id),
            user_id=permission.user_id,
            date=permission.date,
            start_time=permission.start_time,
            end_time=permission.end_time,
            reason=permission.reason,
            status=permission.status,
            created_at=permission.created_at,
        )

class PermissionCreate(CamelModel):
    user: Optional[Union[str, int]] = None
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    reason: Optional[str] = None

    @model_validator(mode="after")
    def check_times(self):
        if self.end_time <= self.start_time:
            raise ValueError("endTime must be after startTime")
        return self

class PermissionUpdate(CamelModel):
    date: Optional[dt.date] = None
    start_time: Optional[dt.time] = None
    end_time: Optional[dt.time] = None
    reason: Optional[str] = None
