"""Tests for cache backends and the display name cache."""

import logging

import pytest

from deskbook.cache import CACHE_KEY, EXPIRY_KEY, DisplayNameCache, FileCache, MemoryCache, NullCache

logger = logging.getLogger(__name__)

T0 = 1_700_000_000_000


class MillisClock:
    def __init__(self, now: int):
        self.now = now

    def __call__(self):
        return self.now


def test_memory_cache():
    """Test MemoryCache get/set/delete."""
    cache = MemoryCache()

    assert cache.get("key") is None
    cache.set("key", "value")
    assert cache.get("key") == "value"
    assert "key" in cache

    cache.delete("key")
    assert cache.get("key") is None
    cache.delete("key")


def test_null_cache():
    cache = NullCache()
    cache.set("key", "value")

    assert cache.get("key") is None


def test_file_cache_persists(tmp_path):
    """Values written by one FileCache are read by another on the same file."""
    FileCache(cache_dir=tmp_path).set("key", "value")

    cache = FileCache(cache_dir=tmp_path)
    assert cache.get("key") == "value"

    cache.clear()
    assert cache.get("key") is None


def test_file_cache_recovers_from_corruption(tmp_path):
    cache = FileCache(cache_dir=tmp_path)
    cache.path.write_text("{not json")

    assert cache.get("key") is None
    cache.set("key", "value")
    assert cache.get("key") == "value"


def test_display_names_round_trip():
    backend = MemoryCache()
    cache = DisplayNameCache(backend, clock=MillisClock(T0))

    expires_at = cache.set({"user-bob": "Bob"})

    assert expires_at == T0 + 3600 * 1000
    assert backend.get(EXPIRY_KEY) == str(expires_at)
    assert cache.get() == {"user-bob": "Bob"}


@pytest.mark.parametrize("offset, fresh", [(-1, True), (0, False), (1, False)])
def test_display_names_expire(offset, fresh):
    """Entries read at or after their expiry are cleared, both keys together."""
    backend = MemoryCache()
    clock = MillisClock(T0)
    cache = DisplayNameCache(backend, ttl=60, clock=clock)
    expires_at = cache.set({"user-bob": "Bob"})

    clock.now = expires_at + offset

    if fresh:
        assert cache.get() == {"user-bob": "Bob"}
        assert CACHE_KEY in backend
    else:
        assert cache.get() is None
        assert CACHE_KEY not in backend
        assert EXPIRY_KEY not in backend


def test_display_names_invalid_expiry():
    backend = MemoryCache()
    backend.set(CACHE_KEY, '{"user-bob": "Bob"}')
    backend.set(EXPIRY_KEY, "soon")

    assert DisplayNameCache(backend).get() is None
    assert CACHE_KEY not in backend


def test_display_names_missing_expiry():
    """An index without an expiry is treated as absent."""
    backend = MemoryCache()
    backend.set(CACHE_KEY, '{"user-bob": "Bob"}')

    assert DisplayNameCache(backend).get() is None


def test_display_names_merge_keeps_expiry():
    """Merging names into a fresh index does not push its expiry back."""
    backend = MemoryCache()
    clock = MillisClock(T0)
    cache = DisplayNameCache(backend, ttl=60, clock=clock)
    expires_at = cache.set({"user-bob": "Bob"})

    clock.now = T0 + 30_000
    merged = cache.merge({"user-carol": "Carol"})

    assert merged == {"user-bob": "Bob", "user-carol": "Carol"}
    assert backend.get(EXPIRY_KEY) == str(expires_at)
    assert cache.get() == merged

    clock.now = expires_at
    assert cache.get() is None


def test_display_names_merge_into_empty_cache():
    backend = MemoryCache()
    cache = DisplayNameCache(backend, ttl=60, clock=MillisClock(T0))

    assert cache.merge({"user-bob": "Bob"}) == {"user-bob": "Bob"}
    assert backend.get(EXPIRY_KEY) == str(T0 + 60_000)
