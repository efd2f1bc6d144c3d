# writdesk/api/v1/deps.py

from typing import AsyncIterator, Optional

import httpx
from fastapi import Depends, Request
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer

from writdesk.core.config import settings
from writdesk.core.logger import logger
from writdesk.core.session import SessionContext
from writdesk.services.api_cache import api_cache
from writdesk.services.case_api_client import CaseApiClient

access_token_header = APIKeyHeader(name=settings.ACCESS_TOKEN_HEADER, auto_error=False)
bearer = HTTPBearer(auto_error=False)

# ============================================================================
# Session Dependency
# ============================================================================

def get_session(
    request: Request,
    access_token: Optional[str] = Depends(access_token_header),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> SessionContext:
    """
    Build the caller's session from the access-token header (or a Bearer
    token). The token is opaque here; the case service decides validity.
    """
    token = access_token or (credentials.credentials if credentials else None)

    def on_invalidate(session: SessionContext) -> None:
        logger.info("Session invalidated; clearing cached data")
        api_cache.purge_token(session.original_token)

    session = SessionContext(token=token, on_invalidate=on_invalidate)
    request.state.session = session
    return session


# ============================================================================
# Case service client
# ============================================================================

def get_case_api_transport() -> Optional[httpx.AsyncBaseTransport]:
    """Outbound transport; None uses httpx's default network transport."""
    return None


async def get_case_api_client(
    session: SessionContext = Depends(get_session),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_case_api_transport),
) -> AsyncIterator[CaseApiClient]:
    client = CaseApiClient(session, transport=transport)
    try:
        yield client
    finally:
        await client.aclose()
