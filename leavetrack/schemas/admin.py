from typing import List
from leavetrack.schemas.hydra import CamelModel

class AdminStats(CamelModel):
    total_employees: int
    active_employees: int
    pending_leaves: int
    today_absent: int

class PoolSummary(CamelModel):
    taken: float
    remaining: float = 0
    total: float = 0

class LeaveTypeSummary(CamelModel):
    paid: PoolSummary
    sick: PoolSummary
    unpaid: PoolSummary

class EmployeeLeaveSummary(CamelModel):
    id: int
    first_name: str
    last_name: str
    year: int
    leaves: LeaveTypeSummary
    total_leaves: PoolSummary

class EmployeeBrief(CamelModel):
    id: int
    first_name: str
    last_name: str
    email: str

class EmployeeList(CamelModel):
    date: str
    employees: List[EmployeeBrief]
