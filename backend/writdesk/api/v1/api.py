"""
Main API router aggregator
"""
from fastapi import APIRouter

from writdesk.api.v1.endpoints import auth, dashboard, proceedings, writs

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(writs.router, prefix="/writs", tags=["Writs"])
api_router.include_router(proceedings.router, prefix="/proceedings", tags=["Proceedings"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])
