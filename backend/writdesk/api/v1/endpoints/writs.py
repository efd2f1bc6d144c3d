"""
Writ endpoints: listing, debounced search, pickers, detail, registration and
draft resumption.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status

from writdesk.api.v1.deps import get_case_api_client
from writdesk.core.logger import logger
from writdesk.schemas import (
    DraftResumeResponse,
    Writ,
    WritCreatedResponse,
    WritDetailResponse,
    WritFormInput,
    WritListResponse,
    WritPickerResponse,
    WritSearchResponse,
)
from writdesk.services import case_views
from writdesk.services.api_cache import (
    WRITS,
    CachedResult,
    api_cache,
    writ_key,
    writ_proceedings_key,
)
from writdesk.services.case_api_client import CaseApiClient
from writdesk.services.draft_probe import probe_drafts
from writdesk.services.proceeding_form import ProceedingForm
from writdesk.services.search_service import search_coordinator
from writdesk.services.writ_form import register_writ
from writdesk.utils.exceptions import CaseApiRequestError, DraftNotFoundError, WritNotFoundError
from writdesk.utils.helpers import format_writ_type

router = APIRouter()


def _token(client: CaseApiClient) -> str:
    return client.session.token or ""


async def load_writs(client: CaseApiClient, refresh: bool = False) -> CachedResult[List[Writ]]:
    return await api_cache.fetch(_token(client), WRITS, client.list_writs, refresh=refresh)


async def load_writ(client: CaseApiClient, writ_id: str, refresh: bool = False) -> CachedResult[Writ]:
    try:
        return await api_cache.fetch(
            _token(client), writ_key(writ_id), lambda: client.get_writ(writ_id), refresh=refresh
        )
    except CaseApiRequestError as exc:
        if exc.status_code == 404:
            raise WritNotFoundError(writ_id) from exc
        raise


@router.get("", response_model=WritListResponse, response_model_exclude_none=True)
async def list_writs(
    search: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    branch: Optional[str] = None,
    visible: Optional[int] = Query(None, ge=0),
    include_drafts: bool = Query(True, alias="includeDrafts"),
    refresh: bool = False,
    client: CaseApiClient = Depends(get_case_api_client),
):
    """
    Filtered writ list with a 'show more' window. Draft probing runs only
    after the list itself has resolved.
    """
    cached = await load_writs(client, refresh=refresh)
    filtered = case_views.filter_writs(cached.value, search=search, status=status_filter, branch=branch)
    items, can_show_more = case_views.paginate_visible(filtered, visible)

    drafts: List[str] = []
    if include_drafts and items:
        drafts = sorted(await probe_drafts(client, items))

    return WritListResponse(
        items=items,
        total=len(filtered),
        visible=len(items),
        can_show_more=can_show_more,
        drafts=drafts,
        stale=cached.stale,
        error=cached.error,
    )


@router.get("/search", response_model=WritSearchResponse)
async def search_writs(
    request: Request,
    q: str = "",
    client: CaseApiClient = Depends(get_case_api_client),
):
    """
    Server-side writ search, debounced per browser tab (X-Tab-ID). A search
    overtaken by a newer one from the same tab reports `superseded` and no
    results. A blank query returns the full list.
    """
    channel = search_coordinator.channel_for(_token(client), getattr(request.state, "tab_id", None))
    fallback: List[Writ] = []
    if not q.strip():
        fallback = (await load_writs(client)).value
    outcome = await search_coordinator.run(channel, q, client.search_writs, fallback=fallback)
    return WritSearchResponse(query=outcome.query, results=outcome.results, superseded=outcome.superseded)


@router.get("/picker", response_model=WritPickerResponse)
async def writ_picker(client: CaseApiClient = Depends(get_case_api_client)):
    """Writs open for a new proceeding, and those with a draft to resume."""
    writs = (await load_writs(client)).value
    drafts = await probe_drafts(client, writs)
    return WritPickerResponse(
        available=case_views.writs_for_new_proceeding(writs, drafts),
        with_drafts=case_views.writs_with_drafts(writs, drafts),
    )


@router.post("", response_model=WritCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_writ(form: WritFormInput, client: CaseApiClient = Depends(get_case_api_client)):
    """
    Step 1 of writ registration. The response carries the pre-filled first
    proceeding form (step 2).
    """
    writ, proceeding_form = await register_writ(client, form)
    api_cache.invalidate(_token(client), WRITS)
    return WritCreatedResponse(writ=writ, proceeding_form=proceeding_form)


@router.get("/{writ_id}", response_model=WritDetailResponse, response_model_exclude_none=True)
async def get_writ(
    writ_id: str,
    refresh: bool = False,
    client: CaseApiClient = Depends(get_case_api_client),
):
    writ = await load_writ(client, writ_id, refresh=refresh)
    proceedings = await api_cache.fetch(
        _token(client),
        writ_proceedings_key(writ_id),
        lambda: client.list_proceedings_by_writ(writ_id),
        refresh=refresh,
    )
    return WritDetailResponse(
        writ=writ.value,
        writ_type_label=format_writ_type(writ.value.writ_type),
        timeline=case_views.writ_timeline(proceedings.value),
        available_types=ProceedingForm(writ.value).available_types(),
        stale=writ.stale or proceedings.stale,
        error=writ.error or proceedings.error,
    )


@router.get("/{writ_id}/draft", response_model=DraftResumeResponse)
async def resume_draft(writ_id: str, client: CaseApiClient = Depends(get_case_api_client)):
    writ = (await load_writ(client, writ_id)).value
    draft = await client.get_draft_proceeding(writ_id)
    if draft is None:
        raise DraftNotFoundError(writ_id)

    form = ProceedingForm.from_draft(draft, writ)
    logger.info("Resuming draft %s for writ %s", draft.id, writ_id)
    return DraftResumeResponse(
        writ=writ,
        draft=draft,
        form=form.to_input(),
        available_types=form.available_types(),
    )
