from pydantic import Field, model_validator
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional, Union

from leavetrack.models.leave import Leave, LeaveStatus, LeaveType
from leavetrack.schemas.hydra import CamelModel, iri

class LeaveRead(CamelModel):
    id: int
    user: str
    user_id: int
    type: str
    start_date: date
    end_date: date
    total_days: float
    half_day_options: List[date] = []
    reason: Optional[str] = None
    status: str
    certificate: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, leave: Leave) -> "LeaveRead":
        return cls(
            id=leave.id,
            user=iri("users", leave.user_id),
            user_id=leave.user_id,
            type=leave.type,
            start_date=leave.start_date,
            end_date=leave.end_date,
            total_days=float(leave.total_days or 0),
            half_day_options=leave.half_day_options or [],
            reason=leave.reason,
            status=leave.status,
            certificate=leave.certificate,
            created_at=leave.created_at,
        )

class LeaveCreate(CamelModel):
    user: Optional[Union[str, int]] = None
    type: LeaveType
    start_date: date
    end_date: date
    reason: Optional[str] = None
    total_days: Optional[Decimal] = Field(default=None, ge=0)
    half_day_options: List[date] = []

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("endDate must be on or after startDate")
        return self

class LeaveUpdate(CamelModel):
    type: Optional[LeaveType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    reason: Optional[str] = None
    total_days: Optional[Decimal] = Field(default=None, ge=0)
    half_day_options: Optional[List[date]] = None

class StatusUpdate(CamelModel):
    status: LeaveStatus
