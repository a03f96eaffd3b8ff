from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
import logging

from leavetrack.core.exceptions import AccessDeniedError, AuthenticationError
from leavetrack.core.limiter import limiter
from leavetrack.database import get_db
from leavetrack.models.user import User
from leavetrack.routers.auth_deps import get_current_user
from leavetrack.schemas.auth import LoginRequest, UserRead
from leavetrack.schemas.hydra import item
from leavetrack.services import auth as auth_service
from leavetrack.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

@router.post("/login")
@limiter.limit("10/minute")
def login(request: Request, login_data: LoginRequest, db: Session = Depends(get_db)):
    user = UserService(db).authenticate(login_data.email, login_data.password)
    if not user:
        logger.warning("Failed login attempt", extra={"email": login_data.email})
        raise AuthenticationError("Incorrect email or password")
    if not user.is_active:
        raise AccessDeniedError("User is inactive")

    token = auth_service.create_access_token(data={
        "sub": user.email,
        "user_id": user.id,
        "role": user.role.value,
    })
    logger.info(f"User {user.email} logged in")
    return {
        "user": item("users", "User", UserRead.from_model(user).to_api()),
        "token": token,
        "tokenType": "bearer",
    }

@router.get("/me")
def me(current_user: User = Depends(get_current_user)):
    return item("users", "User", UserRead.from_model(current_user).to_api())
