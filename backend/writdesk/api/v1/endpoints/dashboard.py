"""
Dashboard endpoint for the web app
"""
from fastapi import APIRouter, Depends

from writdesk.api.v1.deps import get_case_api_client
from writdesk.schemas import DashboardResponse
from writdesk.services.case_api_client import CaseApiClient
from writdesk.services.dashboard_service import load_dashboard

router = APIRouter()


@router.get("", response_model=DashboardResponse)
async def get_dashboard(client: CaseApiClient = Depends(get_case_api_client)):
    """
    Totals, status pie, per-branch bars and the most recently filed writs
    """
    return await load_dashboard(client)
