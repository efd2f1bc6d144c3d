"""
Debounced, last-writer-wins writ search.

Each channel (one session in one browser tab) holds a monotonically
increasing request token, dropped once its latest search completes.
A search waits out the debounce window and only reports results if no newer
search was issued on the same channel in the meantime, either before the
remote call starts or while it is in flight.
"""
from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from writdesk.core.config import settings
from writdesk.schemas import Writ
from writdesk.utils.exceptions import AuthenticationError, CaseApiError

logger = logging.getLogger(__name__)

SearchFn = Callable[[str], Awaitable[List[Writ]]]

DEFAULT_TAB = "default"


@dataclass
class SearchOutcome:
    query: str
    results: List[Writ] = field(default_factory=list)
    superseded: bool = False


class SearchCoordinator:
    def __init__(self, debounce_seconds: Optional[float] = None) -> None:
        self.debounce_seconds = (
            settings.search_debounce_seconds if debounce_seconds is None else debounce_seconds
        )
        self._counter = itertools.count(1)
        self._latest: Dict[str, int] = {}

    @staticmethod
    def channel_for(token: Optional[str], tab_id: Optional[str]) -> str:
        return f"{token or ''}:{tab_id or DEFAULT_TAB}"

    def issue(self, channel: str) -> int:
        token = next(self._counter)
        self._latest[channel] = token
        return token

    def is_current(self, channel: str, token: int) -> bool:
        return self._latest.get(channel) == token

    def _release(self, channel: str, token: int) -> None:
        if self.is_current(channel, token):
            del self._latest[channel]

    async def run(
        self,
        channel: str,
        query: str,
        search: SearchFn,
        fallback: Optional[Sequence[Writ]] = None,
    ) -> SearchOutcome:
        token = self.issue(channel)
        try:
            return await self._run(channel, token, query, search, fallback)
        finally:
            self._release(channel, token)

    async def _run(
        self,
        channel: str,
        token: int,
        query: str,
        search: SearchFn,
        fallback: Optional[Sequence[Writ]],
    ) -> SearchOutcome:
        query = (query or "").strip()

        if not query:
            return SearchOutcome(query=query, results=list(fallback or []))

        if self.debounce_seconds > 0:
            await asyncio.sleep(self.debounce_seconds)
        if not self.is_current(channel, token):
            logger.debug("Search %r on %s superseded before dispatch", query, channel)
            return SearchOutcome(query=query, superseded=True)

        try:
            results = await search(query)
        except AuthenticationError:
            raise
        except CaseApiError as exc:
            logger.warning("Writ search failed for %r: %s", query, exc.message)
            results = []

        if not self.is_current(channel, token):
            logger.debug("Search %r on %s superseded in flight", query, channel)
            return SearchOutcome(query=query, superseded=True)
        return SearchOutcome(query=query, results=results)


search_coordinator = SearchCoordinator()
