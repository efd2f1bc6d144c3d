import asyncio

import pytest

from writdesk.services.api_cache import ApiCache
from writdesk.utils.exceptions import AuthenticationError, ServiceUnavailableError


class Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_fresh_entries_skip_the_loader():
    clock = Clock()
    cache = ApiCache(ttl_seconds=60, clock=clock)
    calls = []

    async def loader():
        calls.append(1)
        return ["w1"]

    first = asyncio.run(cache.fetch("t", "writs", loader))
    second = asyncio.run(cache.fetch("t", "writs", loader))
    assert first.value == second.value == ["w1"]
    assert len(calls) == 1

    clock.now = 61
    asyncio.run(cache.fetch("t", "writs", loader))
    assert len(calls) == 2


def test_failed_refresh_serves_stale_value_with_error():
    cache = ApiCache(ttl_seconds=0)
    cache.set("t", "writs", ["w1"])

    async def failing():
        raise ServiceUnavailableError()

    result = asyncio.run(cache.fetch("t", "writs", failing))
    assert result.value == ["w1"]
    assert result.stale is True
    assert result.error == "Unable to reach the case service"


def test_failure_without_cached_value_propagates():
    cache = ApiCache()

    async def failing():
        raise ServiceUnavailableError()

    with pytest.raises(ServiceUnavailableError):
        asyncio.run(cache.fetch("t", "writs", failing))


def test_auth_failure_never_serves_stale_data():
    cache = ApiCache(ttl_seconds=0)
    cache.set("t", "writs", ["w1"])

    async def expired():
        raise AuthenticationError()

    with pytest.raises(AuthenticationError):
        asyncio.run(cache.fetch("t", "writs", expired))


def test_entries_are_scoped_per_token_and_purged():
    cache = ApiCache()
    cache.set("alice", "writs", ["a"])
    cache.set("bob", "writs", ["b"])

    assert cache.get("alice", "writs") == ["a"]
    cache.purge_token("alice")
    assert cache.get("alice", "writs") is None
    assert cache.get("bob", "writs") == ["b"]

    cache.invalidate("bob", "writs")
    assert cache.get_stale("bob", "writs") is None


def test_idle_entries_of_abandoned_sessions_are_evicted():
    clock = Clock()
    cache = ApiCache(ttl_seconds=60, clock=clock, idle_seconds=600)
    cache.set("gone", "writs", ["old"])
    cache.set("active", "writs", ["a"])

    clock.now = 500
    assert cache.get_stale("active", "writs") == ["a"]

    clock.now = 700
    cache.set("new", "writs", ["n"])

    assert cache.get_stale("gone", "writs") is None
    assert cache.get_stale("active", "writs") == ["a"]
    assert cache.get_stale("new", "writs") == ["n"]


def test_stale_value_survives_while_key_is_in_use():
    clock = Clock()
    cache = ApiCache(ttl_seconds=60, clock=clock, idle_seconds=600)
    cache.set("t", "writs", ["w1"])

    async def failing():
        raise ServiceUnavailableError()

    for step in range(1, 4):
        clock.now = step * 400
        cache.set("other", "proceedings", [])
        result = asyncio.run(cache.fetch("t", "writs", failing))
        assert result.value == ["w1"] and result.stale is True
