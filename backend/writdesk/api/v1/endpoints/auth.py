from fastapi import APIRouter, Depends, HTTPException, status

from writdesk.api.v1.deps import get_case_api_client
from writdesk.core.logger import logger
from writdesk.schemas import AuthResponse, Credentials
from writdesk.services.case_api_client import CaseApiClient
from writdesk.utils.validators import validate_email

router = APIRouter()


def _normalized_email(credentials: Credentials) -> str:
    email = (credentials.email or "").strip().lower()
    if not email:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email is required")
    return email


@router.post("/login", response_model=AuthResponse, response_model_exclude_none=True)
async def login(credentials: Credentials, client: CaseApiClient = Depends(get_case_api_client)):
    """Exchange credentials for the case service's access token."""
    email = _normalized_email(credentials)
    result = await client.login(email, credentials.password)
    logger.info("Login succeeded for %s", email)
    return result


@router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    response_model_exclude_none=True,
)
async def signup(credentials: Credentials, client: CaseApiClient = Depends(get_case_api_client)):
    email = _normalized_email(credentials)
    if not validate_email(email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid email format")
    result = await client.signup(email, credentials.password)
    logger.info("Signup succeeded for %s", email)
    return result
