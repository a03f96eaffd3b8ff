"""
Authentication and role dependencies for FastAPI endpoints.
The bearer token travels with each request; nothing is kept in server-side session state.
"""
import logging
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from leavetrack.core.exceptions import AccessDeniedError
from leavetrack.database import get_db
from leavetrack.models.user import User
from leavetrack.services import auth as auth_service
from leavetrack.schemas.auth import TokenData

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/login")


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    """
    Extracts and validates the current user from the JWT token.
    """
    payload = auth_service.decode_access_token(token)

    if payload is None:
        logger.warning("Authentication failed: Invalid token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if payload.get("error") == "TOKEN_EXPIRED":
        logger.info("Authentication failed: Token expired")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="TOKEN_EXPIRED",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if payload.get("type") != "access":
        logger.warning("Authentication failed: Invalid token type")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
            headers={"WWW-Authenticate": "Bearer"},
        )

    email = payload.get("sub")
    if email is None:
        logger.warning("Authentication failed: Missing subject (email) in token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing subject in token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token_data = TokenData(email=email, role=payload.get("role"))
    user = db.query(User).filter(User.email == token_data.email).first()

    if user is None:
        logger.warning(f"Authentication failed: User {email} not found in database")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        logger.warning(f"Authentication failed: User {email} is inactive")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is inactive"
        )
    return user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Admin-only endpoints (user management, approvals, balance administration)."""
    if not current_user.is_admin:
        logger.warning(f"Access denied for {current_user.email}: admin role required")
        raise AccessDeniedError("Unauthorized: administrator role required")
    return current_user
