from fastapi import APIRouter
from leavetrack.routers import (
    auth, users, leaves, permissions, holidays, leave_balances, admin
)

# Centralized API router hub
# Routers are aggregated here, and main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(auth.router, tags=["Authentication"])
api_router.include_router(users.router, tags=["Users"])
api_router.include_router(leaves.router, tags=["Leaves"])
api_router.include_router(permissions.router, tags=["Permissions"])
api_router.include_router(holidays.router, tags=["Holidays"])
api_router.include_router(leave_balances.router, tags=["Leave Balances"])
api_router.include_router(admin.router, tags=["Administration"])
