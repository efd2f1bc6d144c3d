from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple

import httpx

from writdesk.core.config import settings
from writdesk.core.logger import logger
from writdesk.core.session import SessionContext
from writdesk.middleware.correlation import current_correlation_id
from writdesk.schemas import (
    AuthResponse,
    BranchCount,
    CreateWritInput,
    DashboardMetrics,
    Proceeding,
    ProceedingPayloadBase,
    Writ,
)
from writdesk.utils.exceptions import (
    AuthenticationError,
    CaseApiRequestError,
    ResponseParseError,
    ServiceUnavailableError,
)

AUTH_PATH_PREFIX = "/auth/"
AUTH_STATUSES = (401, 403)
ATTACHMENT_FIELD = "orderOfProceeding"

# (filename, content, content_type)
FileTuple = Tuple[str, bytes, str]


class CaseApiClient:
    """Typed access to the remote writ/proceeding service.

    Every protected call carries the session token; 401/403 invalidates the
    session. Errors surface as CaseApiError subclasses.
    """

    def __init__(
        self,
        session: SessionContext,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.session = session
        self.base_url = (base_url or settings.CASE_API_BASE_URL).rstrip("/")
        self.token_header = settings.ACCESS_TOKEN_HEADER
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout or settings.CASE_API_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "CaseApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Request pipeline
    # ------------------------------------------------------------------

    def _headers(self, is_auth_path: bool) -> Dict[str, str]:
        headers: Dict[str, str] = {"Accept": "application/json"}
        if not is_auth_path and self.session.token:
            headers[self.token_header] = self.session.token
        correlation_id = current_correlation_id()
        if correlation_id:
            headers["X-Correlation-ID"] = correlation_id
        return headers

    def _auth_failure(self, status: int, message: Optional[str]) -> AuthenticationError:
        self.session.invalidate()
        if not message:
            message = (
                "Your session has expired. Please login again."
                if status == 401
                else "Access forbidden. Please login again."
            )
        return AuthenticationError(message, status_code=status)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json_body: Any = None,
        data: Optional[Dict[str, str]] = None,
        files: Optional[Dict[str, FileTuple]] = None,
    ) -> Any:
        is_auth_path = path.startswith(AUTH_PATH_PREFIX)

        if not is_auth_path and not self.session.token:
            logger.warning("No token available for protected route: %s", path)
            self.session.invalidate()
            raise AuthenticationError()

        try:
            response = await self._client.request(
                method,
                path,
                params=params,
                json=json_body,
                data=data,
                files=files,
                headers=self._headers(is_auth_path),
            )
        except httpx.HTTPError as exc:
            logger.error("%s %s failed: %s", method, path, str(exc))
            raise ServiceUnavailableError() from exc

        status = response.status_code
        logger.info("%s %s -> %s", method, path, status)

        try:
            body = response.json()
        except ValueError:
            logger.error("Failed to parse response for %s %s (status=%s)", method, path, status)
            if not is_auth_path and status in AUTH_STATUSES:
                raise self._auth_failure(status, None)
            raise ResponseParseError(status_code=status)

        message = body.get("message") if isinstance(body, dict) else None

        if not is_auth_path and status in AUTH_STATUSES:
            logger.warning("Authentication error on %s: %s", path, status)
            raise self._auth_failure(status, message)

        if not response.is_success:
            logger.warning("Request failed %s %s: %s", method, path, message or status)
            raise CaseApiRequestError(message or f"Request failed with status {status}", status_code=status)

        # Some endpoints report failures in the body with HTTP 200.
        if isinstance(body, dict):
            embedded = body.get("status")
            if isinstance(embedded, int) and not isinstance(embedded, bool) and embedded != 200:
                if not is_auth_path and embedded in AUTH_STATUSES:
                    raise self._auth_failure(embedded, message)
                logger.warning("Status error on %s: %s", path, message or embedded)
                raise CaseApiRequestError(message or f"Request failed with status {embedded}", status_code=embedded)

        return body

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    async def _authenticate(self, path: str, email: str, password: str, action: str) -> AuthResponse:
        body = await self._request("POST", path, json_body={"email": email, "password": password})
        result = AuthResponse.model_validate(body if isinstance(body, dict) else {})
        if not result.token:
            raise CaseApiRequestError(f"{action} succeeded but no token was returned")
        return result

    async def signup(self, email: str, password: str) -> AuthResponse:
        return await self._authenticate("/auth/signup", email, password, "Signup")

    async def login(self, email: str, password: str) -> AuthResponse:
        return await self._authenticate("/auth/login", email, password, "Login")

    # ------------------------------------------------------------------
    # Writs
    # ------------------------------------------------------------------

    async def list_writs(self) -> List[Writ]:
        body = await self._request("GET", "/v1/firs")
        return [Writ.model_validate(item) for item in _as_list(body)]

    async def search_writs(self, query: str) -> List[Writ]:
        body = await self._request("GET", "/v1/firs/search", params={"q": query})
        return [Writ.model_validate(item) for item in _as_list(body)]

    async def get_writ(self, writ_id: str) -> Writ:
        body = await self._request("GET", f"/v1/firs/{writ_id}")
        return Writ.model_validate(_unwrap(body))

    async def get_dashboard_metrics(self) -> DashboardMetrics:
        body = await self._request("GET", "/v1/firs/dash")
        return DashboardMetrics.model_validate(_unwrap(body) or {})

    async def get_branch_graph(self) -> List[BranchCount]:
        body = await self._request("GET", "/v1/firs/graph")
        return [BranchCount.model_validate(item) for item in _as_list(body)]

    async def create_writ(self, payload: CreateWritInput) -> Writ:
        body = await self._request("POST", "/v1/firs", json_body=payload.to_wire())
        return Writ.model_validate(_unwrap(body))

    # ------------------------------------------------------------------
    # Proceedings
    # ------------------------------------------------------------------

    async def list_proceedings(self) -> List[Proceeding]:
        body = await self._request("GET", "/v1/proceedings")
        return [Proceeding.model_validate(item) for item in _as_list(body)]

    async def list_proceedings_by_writ(self, writ_id: str) -> List[Proceeding]:
        body = await self._request("GET", f"/v1/proceedings/fir/{writ_id}")
        return [Proceeding.model_validate(item) for item in _as_list(body)]

    async def get_draft_proceeding(self, writ_id: str) -> Optional[Proceeding]:
        """
        The draft lookup shares the per-writ path; the service may answer with a
        single record, a list, or nothing.
        """
        body = await self._request("GET", f"/v1/proceedings/fir/{writ_id}", params={"draft": "true"})
        for item in _as_list(body):
            if not isinstance(item, dict) or "_id" not in item:
                continue
            proceeding = Proceeding.model_validate(item)
            if proceeding.draft:
                return proceeding
        return None

    async def create_proceeding(
        self,
        payload: ProceedingPayloadBase,
        attachment: Optional[FileTuple] = None,
    ) -> Proceeding:
        wire = payload.to_wire()
        if attachment is None:
            body = await self._request("POST", "/v1/proceedings", json_body=wire)
        else:
            # Multipart: scalars as-is, nested objects JSON-encoded.
            form = {
                key: value if isinstance(value, str) else json.dumps(value)
                for key, value in wire.items()
            }
            body = await self._request(
                "POST",
                "/v1/proceedings",
                data=form,
                files={ATTACHMENT_FIELD: attachment},
            )
        return Proceeding.model_validate(_unwrap(body))


def _unwrap(body: Any) -> Any:
    """Accept both bare records and {"data": record} envelopes."""
    if isinstance(body, dict) and isinstance(body.get("data"), (dict, list)):
        return body["data"]
    return body


def _as_list(body: Any) -> List[Any]:
    body = _unwrap(body)
    if body is None:
        return []
    if isinstance(body, list):
        return body
    if isinstance(body, dict):
        return [body] if body else []
    return []
