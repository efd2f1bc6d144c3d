"""
Health check
"""
from fastapi import APIRouter

from writdesk.core.config import settings

router = APIRouter()


@router.get("")
def health_check():
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "caseApi": settings.CASE_API_BASE_URL,
    }
