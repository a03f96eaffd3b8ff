from pydantic import EmailStr, Field
from datetime import date, datetime
from typing import Optional

from leavetrack.models.user import User
from leavetrack.schemas.hydra import CamelModel

class UserRead(CamelModel):
    id: int
    email: str
    first_name: str
    last_name: str
    department: Optional[str] = None
    hire_date: Optional[date] = None
    is_admin: bool
    status: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, user: User) -> "UserRead":
        return cls.model_validate(user)

class UserCreate(CamelModel):
    email: EmailStr
    password: str = Field(min_length=8)
    first_name: str
    last_name: str
    department: Optional[str] = None
    hire_date: Optional[date] = None
    is_admin: bool = False
    status: str = Field(default="active", pattern="^(active|inactive)$")

class UserUpdate(CamelModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=8)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    department: Optional[str] = None
    hire_date: Optional[date] = None
    is_admin: Optional[bool] = None
    status: Optional[str] = Field(default=None, pattern="^(active|inactive)$")

class LoginRequest(CamelModel):
    email: EmailStr
    password: str

class TokenData(CamelModel):
    email: Optional[str] = None
    role: Optional[str] = None
