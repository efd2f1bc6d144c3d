"""
Per-session in-memory cache of remote reads.

Entries are keyed by (token, resource). A fresh entry is served without a
remote call; when a refresh fails the last known value is served as stale
together with the error message. Entries nobody has read or written for
the idle window (an abandoned session) are pruned on every write.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, Tuple, TypeVar

from writdesk.core.config import settings
from writdesk.utils.exceptions import AuthenticationError, CaseApiError

logger = logging.getLogger(__name__)

T = TypeVar("T")

WRITS = "writs"
PROCEEDINGS = "proceedings"


def writ_key(writ_id: str) -> str:
    return f"writ:{writ_id}"


def writ_proceedings_key(writ_id: str) -> str:
    return f"proceedings:{writ_id}"


@dataclass
class CacheEntry:
    value: Any
    stored_at: float
    used_at: float = 0.0


@dataclass
class CachedResult(Generic[T]):
    value: T
    stale: bool = False
    error: Optional[str] = None


class ApiCache:
    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        idle_seconds: Optional[float] = None,
    ) -> None:
        self.ttl_seconds = settings.CACHE_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self.idle_seconds = settings.CACHE_IDLE_SECONDS if idle_seconds is None else idle_seconds
        self._clock = clock
        self._entries: Dict[Tuple[str, str], CacheEntry] = {}

    def _fresh(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.stored_at < self.ttl_seconds

    def _touch(self, token: str, key: str) -> Optional[CacheEntry]:
        entry = self._entries.get((token, key))
        if entry is not None:
            entry.used_at = self._clock()
        return entry

    def prune(self) -> int:
        cutoff = self._clock() - self.idle_seconds
        idle = [k for k, entry in self._entries.items() if entry.used_at < cutoff]
        for k in idle:
            del self._entries[k]
        if idle:
            logger.info("Evicted %d idle cache entries", len(idle))
        return len(idle)

    def get(self, token: str, key: str) -> Optional[Any]:
        entry = self._touch(token, key)
        if entry is None or not self._fresh(entry):
            return None
        return entry.value

    def get_stale(self, token: str, key: str) -> Optional[Any]:
        entry = self._touch(token, key)
        return entry.value if entry is not None else None

    def set(self, token: str, key: str, value: Any) -> None:
        now = self._clock()
        self._entries[(token, key)] = CacheEntry(value=value, stored_at=now, used_at=now)
        self.prune()

    def invalidate(self, token: str, *keys: str) -> None:
        for key in keys:
            self._entries.pop((token, key), None)

    def purge_token(self, token: Optional[str]) -> None:
        if not token:
            return
        stale_keys = [k for k in self._entries if k[0] == token]
        for k in stale_keys:
            del self._entries[k]
        if stale_keys:
            logger.info("Purged %d cache entries for invalidated session", len(stale_keys))

    def clear(self) -> None:
        self._entries.clear()

    async def fetch(
        self,
        token: str,
        key: str,
        loader: Callable[[], Awaitable[T]],
        refresh: bool = False,
    ) -> CachedResult[T]:
        """
        Serve a fresh entry, else load and store. A failed load falls back to
        the last stored value flagged stale; with nothing stored the error
        propagates. Authentication failures always propagate.
        """
        if not refresh:
            cached = self.get(token, key)
            if cached is not None:
                return CachedResult(value=cached)

        try:
            value = await loader()
        except AuthenticationError:
            raise
        except CaseApiError as exc:
            previous = self.get_stale(token, key)
            if previous is None:
                raise
            logger.warning("Serving stale %s after failed refresh: %s", key, exc.message)
            return CachedResult(value=previous, stale=True, error=exc.message)

        self.set(token, key, value)
        return CachedResult(value=value)


api_cache = ApiCache()
