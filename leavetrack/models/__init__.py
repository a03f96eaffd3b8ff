# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import user, leave, permission, holiday, leave_balance

# Explicit class exports for cleaner imports
from .user import User, UserRole
from .leave import Leave, LeaveStatus, LeaveType
from .permission import Permission
from .holiday import Holiday
from .leave_balance import LeaveBalance

__all__ = [
    "User",
    "UserRole",
    "Leave",
    "LeaveStatus",
    "LeaveType",
    "Permission",
    "Holiday",
    "LeaveBalance",
]
