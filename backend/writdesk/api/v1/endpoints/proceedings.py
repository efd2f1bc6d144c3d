"""
Proceeding endpoints: filtered listing with stats, the upcoming-hearing
queue, and creation (final or draft) with an optional order-of-proceeding
attachment.
"""
import json
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from pydantic import ValidationError

from writdesk.api.v1.deps import get_case_api_client
from writdesk.api.v1.endpoints.writs import load_writ, load_writs
from writdesk.core.logger import logger
from writdesk.schemas import (
    Proceeding,
    ProceedingFormInput,
    ProceedingListResponse,
    UpcomingHearing,
    Writ,
)
from writdesk.services import case_views
from writdesk.services.api_cache import PROCEEDINGS, CachedResult, api_cache, writ_proceedings_key
from writdesk.services.case_api_client import CaseApiClient
from writdesk.services.draft_probe import find_draft
from writdesk.services.proceeding_form import ProceedingForm
from writdesk.utils.exceptions import AuthenticationError, CaseApiError, DraftAlreadyExistsError, FormValidationError

router = APIRouter()


def _token(client: CaseApiClient) -> str:
    return client.session.token or ""


async def load_proceedings(client: CaseApiClient, refresh: bool = False) -> CachedResult[List[Proceeding]]:
    return await api_cache.fetch(_token(client), PROCEEDINGS, client.list_proceedings, refresh=refresh)


async def _writs_for_search(client: CaseApiClient) -> List[Writ]:
    # Writ fields only widen the search; a failed lookup narrows it.
    try:
        return (await load_writs(client)).value
    except AuthenticationError:
        raise
    except CaseApiError as exc:
        logger.warning("Writ lookup for proceeding search failed: %s", exc.message)
        return []


@router.get("", response_model=ProceedingListResponse, response_model_exclude_none=True)
async def list_proceedings(
    search: Optional[str] = None,
    proceeding_type: Optional[str] = Query(None, alias="type"),
    writ_id: Optional[str] = Query(None, alias="writId"),
    refresh: bool = False,
    client: CaseApiClient = Depends(get_case_api_client),
):
    cached = await load_proceedings(client, refresh=refresh)
    writs = await _writs_for_search(client) if search and search.strip() else []
    items = case_views.filter_proceedings(
        cached.value,
        search=search,
        proceeding_type=proceeding_type,
        writ_id=writ_id,
        writs=writs,
    )
    return ProceedingListResponse(
        items=items,
        total=len(items),
        stats=case_views.proceeding_stats(cached.value),
        stale=cached.stale,
        error=cached.error,
    )


@router.get("/upcoming", response_model=List[UpcomingHearing])
async def upcoming_hearings(
    limit: Optional[int] = Query(None, ge=0),
    client: CaseApiClient = Depends(get_case_api_client),
):
    """Next hearing of every writ, earliest first."""
    cached = await load_proceedings(client)
    return case_views.upcoming_hearings(cached.value, limit=limit)


def _parse_form_input(payload: str) -> ProceedingFormInput:
    try:
        return ProceedingFormInput.model_validate(json.loads(payload))
    except ValueError as exc:
        errors = {}
        if isinstance(exc, ValidationError):
            errors = {
                ".".join(str(part) for part in err["loc"]): err["msg"]
                for err in exc.errors()
            }
        raise FormValidationError(errors or {"payload": "Invalid JSON"}, "Invalid proceeding payload") from exc


@router.post("", response_model=Proceeding, status_code=status.HTTP_201_CREATED, response_model_exclude_none=True)
async def create_proceeding(
    payload: str = Form(...),
    file: Optional[UploadFile] = File(None),
    resume: bool = Query(False),
    client: CaseApiClient = Depends(get_case_api_client),
):
    """
    Create a proceeding from the posted form state (`payload`, JSON) and an
    optional attachment. `draft: true` in the payload saves a draft; a new
    proceeding for a writ that already has a draft is refused unless the
    draft is being resumed.
    """
    data = _parse_form_input(payload)
    if not data.fir:
        raise FormValidationError({"fir": "Required"}, "Please fill in required fields (FIR and Hearing Date)")

    writ = (await load_writ(client, data.fir)).value
    if not resume and await find_draft(client, writ.id) is not None:
        raise DraftAlreadyExistsError(writ.id)

    form = ProceedingForm.from_input(data, writ)
    if file is not None and file.filename:
        form.attach_file(file.filename, file.content_type, await file.read())

    token = _token(client)
    listing = api_cache.get_stale(token, PROCEEDINGS)
    created = await form.submit(client, draft=data.draft, proceedings=listing)
    api_cache.invalidate(token, writ_proceedings_key(writ.id))
    logger.info("Proceeding %s saved for writ %s", created.id, writ.id)
    return created
