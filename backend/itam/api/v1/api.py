"""
API v1 router configuration
"""
from fastapi import APIRouter

from itam.api.v1.endpoints import assets, audit, auth, dashboard, licenses, settings, tickets, users

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(assets.router, prefix="/assets", tags=["assets"])
api_router.include_router(licenses.router, prefix="/licenses", tags=["licenses"])
api_router.include_router(tickets.router, prefix="/tickets", tags=["tickets"])
api_router.include_router(audit.router, prefix="/audit-logs", tags=["audit"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
api_router.include_router(settings.router, prefix="/settings", tags=["settings"])
