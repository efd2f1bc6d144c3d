"""
Draft probing: which writs already have an unresolved draft proceeding.

Runs only after the writ list has resolved; one lookup per writ, issued
concurrently. A failed lookup counts as "no draft".
"""
from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional, Set

from writdesk.schemas import Proceeding, Writ
from writdesk.services.case_api_client import CaseApiClient
from writdesk.utils.exceptions import AuthenticationError, CaseApiError

logger = logging.getLogger(__name__)


async def find_draft(client: CaseApiClient, writ_id: str) -> Optional[Proceeding]:
    try:
        return await client.get_draft_proceeding(writ_id)
    except AuthenticationError:
        raise
    except CaseApiError as exc:
        logger.warning("Draft lookup failed for writ %s: %s", writ_id, exc.message)
        return None


async def probe_drafts(client: CaseApiClient, writs: Iterable[Writ]) -> Set[str]:
    writ_ids = [w.id for w in writs]
    if not writ_ids:
        return set()
    drafts = await asyncio.gather(*(find_draft(client, writ_id) for writ_id in writ_ids))
    found = {writ_id for writ_id, draft in zip(writ_ids, drafts) if draft is not None}
    logger.info("Draft probe: %d of %d writs have drafts", len(found), len(writ_ids))
    return found
