from typing import Optional, Union
from pydantic import Field

from leavetrack.models.leave_balance import LeaveBalance
from leavetrack.schemas.hydra import CamelModel, iri

class LeaveBalanceRead(CamelModel):
    id: int
    user: str
    year: int
    initial_paid_leave: int
    initial_sick_leave: int
    remaining_paid_leave: int
    remaining_sick_leave: int
    carried_over_from_previous_year: int
    carried_over_to_next_year: int

    @classmethod
    def from_model(cls, balance: LeaveBalance) -> "LeaveBalanceRead":
        return cls(
            id=balance.id,
            user=iri("users", balance.user_id),
            year=balance.year,
            initial_paid_leave=balance.initial_paid_leave,
            initial_sick_leave=balance.initial_sick_leave,
            remaining_paid_leave=balance.remaining_paid_leave,
            remaining_sick_leave=balance.remaining_sick_leave,
            carried_over_from_previous_year=balance.carried_over_from_previous_year,
            carried_over_to_next_year=balance.carried_over_to_next_year,
        )

class LeaveBalanceCreate(CamelModel):
    user: Union[str, int]
    year: int = Field(ge=1900, le=9999)
    months_worked: Optional[int] = Field(default=None, ge=0)
    prorate: bool = False

class LeaveBalanceUpdate(CamelModel):
    """
    Clients usually send the whole record back; only carriedOverToNextYear is honoured.
    """
    user: Optional[Union[str, int]] = None
    year: Optional[int] = None
    initial_paid_leave: Optional[int] = None
    initial_sick_leave: Optional[int] = None
    remaining_paid_leave: Optional[int] = None
    remaining_sick_leave: Optional[int] = None
    carried_over_from_previous_year: Optional[int] = None
    carried_over_to_next_year: Optional[int] = None

class CarryOverRequest(CamelModel):
    user: Union[str, int]
    from_year: int
    days_to_carry_over: int

class DeductionRequest(CamelModel):
    user: Union[str, int]
    year: int
    days: int
    leave_type: str = "paid"
