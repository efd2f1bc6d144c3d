import json
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest
from fastapi.testclient import TestClient

from writdesk.api.v1.deps import get_case_api_transport
from writdesk.core.session import SessionContext
from writdesk.main import app
from writdesk.schemas import Proceeding, Writ
from writdesk.services.api_cache import api_cache
from writdesk.services.case_api_client import CaseApiClient
from writdesk.services.search_service import search_coordinator

TOKEN = "test-token"

Handler = Callable[[httpx.Request], httpx.Response]


def writ_data(writ_id: str = "w1", **overrides) -> Dict[str, Any]:
    data = {
        "_id": writ_id,
        "firNumber": f"FIR-{writ_id}",
        "branchName": "Ludhiana",
        "writNumber": f"CRWP-{writ_id}",
        "writType": "BAIL",
        "writYear": 2024,
        "petitionerName": f"Petitioner {writ_id}",
        "status": "REGISTERED",
        "dateOfFIR": "2024-01-15",
        "dateOfFiling": "2024-01-20T00:00:00.000Z",
    }
    data.update(overrides)
    return data


def proceeding_data(proceeding_id: str, writ_id: Optional[str] = "w1", **overrides) -> Dict[str, Any]:
    data = {
        "_id": proceeding_id,
        "fir": writ_id,
        "sequence": 1,
        "type": "NOTICE_OF_MOTION",
        "summary": f"Summary {proceeding_id}",
        "hearingDetails": {"dateOfHearing": "2024-03-01", "judgeName": "Justice Rao", "courtNumber": "12"},
        "draft": False,
        "createdAt": "2024-02-01T10:00:00.000Z",
    }
    data.update(overrides)
    return data


def make_writ(writ_id: str = "w1", **overrides) -> Writ:
    return Writ.model_validate(writ_data(writ_id, **overrides))


def make_proceeding(proceeding_id: str, writ_id: Optional[str] = "w1", **overrides) -> Proceeding:
    return Proceeding.model_validate(proceeding_data(proceeding_id, writ_id, **overrides))


class FakeCaseService:
    """Stand-in for the remote case service, served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], Handler] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, path: str, body: Any = None, status_code: int = 200, handler: Optional[Handler] = None):
        if handler is None:
            def handler(request: httpx.Request, body=body, status_code=status_code) -> httpx.Response:
                return httpx.Response(
                    status_code,
                    content=json.dumps(body).encode("utf-8"),
                    headers={"content-type": "application/json"},
                )
        self.routes[(method.upper(), path)] = handler
        return self

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method.upper() and r.url.path == path]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"message": f"No route {request.method} {request.url.path}"})
        return handler(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


def json_body(request: httpx.Request) -> Any:
    return json.loads(request.content.decode("utf-8"))


@pytest.fixture(autouse=True)
def _reset_state(monkeypatch):
    api_cache.clear()
    monkeypatch.setattr(search_coordinator, "debounce_seconds", 0)
    yield
    api_cache.clear()


@pytest.fixture
def fake_service() -> FakeCaseService:
    return FakeCaseService()


@pytest.fixture
def session() -> SessionContext:
    return SessionContext(token=TOKEN)


@pytest.fixture
def make_client(fake_service):
    def factory(session: SessionContext) -> CaseApiClient:
        return CaseApiClient(session, base_url="http://case.test", transport=fake_service.transport)
    return factory


@pytest.fixture
def api(fake_service):
    app.dependency_overrides[get_case_api_transport] = lambda: fake_service.transport
    with TestClient(app) as client:
        client.headers.update({"x-access-token": TOKEN})
        yield client
    app.dependency_overrides.clear()
