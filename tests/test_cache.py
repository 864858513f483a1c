import asyncio
import pathlib
import sys

import pytest

# Ensure repo root on sys.path for direct module imports when running tests locally.
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from aspire_api.cache import (
    InvalidPatternError,
    RequestDescriptor,
    ResponseCache,
    compile_pattern,
    default_key,
    select_tier,
)


def _fill(cache: ResponseCache, ttl: int, *keys: str) -> None:
    tier = cache.tier_for(ttl)
    for key in keys:
        tier.put(key, b'{"ok": true}', ttl)


@pytest.mark.parametrize(
    ("ttl", "tier"),
    [(1, "short"), (60, "short"), (61, "medium"), (300, "medium"), (301, "long"), (86400, "long")],
)
def test_select_tier_boundaries(ttl, tier):
    assert select_tier(ttl) == tier


def test_select_tier_rejects_non_positive_ttl():
    with pytest.raises(ValueError):
        select_tier(0)


def test_default_key_without_query():
    assert default_key(RequestDescriptor("GET", "/api/media/photos")) == "GET:/api/media/photos"


def test_default_key_keeps_raw_query_segments():
    descriptor = RequestDescriptor("GET", "/api/items", ("limit=5", "type=urban%20design"))
    assert default_key(descriptor) == "GET:/api/items?limit=5&type=urban%20design"


def test_key_function_failures_fall_back_to_default_key():
    cache = ResponseCache()
    descriptor = RequestDescriptor("GET", "/api/items")

    def broken(_descriptor):
        raise RuntimeError("boom")

    assert cache.key_for(descriptor, broken) == "GET:/api/items"
    assert cache.key_for(descriptor, lambda _d: "") == "GET:/api/items"
    assert cache.key_for(descriptor, lambda _d: 42) == "GET:/api/items"
    assert cache.key_for(descriptor, lambda d: f"items:{d.path}") == "items:/api/items"


def test_entry_is_served_within_ttl(clock):
    cache = ResponseCache(timer=clock)
    _fill(cache, 300, "GET:/api/media/photos")

    clock.advance(299)
    entry = cache.tier_for(300).get("GET:/api/media/photos")

    assert entry is not None
    assert entry.value == b'{"ok": true}'
    assert entry.tier == "medium"


def test_entry_expires_on_read_without_sweep(clock):
    cache = ResponseCache(timer=clock)
    tier = cache.tier_for(30)
    tier.put("GET:/api/media/stats", b"{}", 30)

    clock.advance(31)

    assert tier.get("GET:/api/media/stats") is None
    assert tier.stats()["misses"] == 1


def test_entry_uses_its_own_ttl_not_the_tier_ttl(clock):
    cache = ResponseCache(timer=clock)
    tier = cache.tier_for(30)
    tier.put("short-lived", b"{}", 30)
    tier.put("full-tier", b"{}", 60)

    clock.advance(45)

    assert tier.get("short-lived") is None
    assert tier.get("full-tier") is not None


def test_invalidate_removes_matches_across_tiers(clock):
    cache = ResponseCache(timer=clock)
    _fill(cache, 60, "GET:/api/media/stats", "GET:/api/media/featured")
    _fill(cache, 300, "GET:/api/media/photos", "GET:/api/items")
    _fill(cache, 1800, "GET:/api/contact/info")

    removed = cache.invalidate("GET:/api/media*")

    assert removed == 3
    assert cache.tier_for(60).keys() == []
    assert cache.tier_for(300).keys() == ["GET:/api/items"]
    assert cache.tier_for(1800).keys() == ["GET:/api/contact/info"]
    assert cache.invalidate("GET:/api/media*") == 0


def test_invalidate_counts_a_key_once_when_present_in_several_tiers(clock):
    cache = ResponseCache(timer=clock)
    _fill(cache, 60, "GET:/api/home")
    _fill(cache, 1800, "GET:/api/home")

    assert cache.invalidate("GET:/api/home*") == 1
    assert all(not tier.keys() for tier in cache.tiers.values())


def test_invalidate_treats_regex_characters_literally(clock):
    cache = ResponseCache(timer=clock)
    _fill(cache, 300, "GET:/api/items?type=a.b", "GET:/api/items?type=axb")

    assert cache.invalidate("GET:/api/items?type=a.b") == 1
    assert cache.tier_for(300).keys() == ["GET:/api/items?type=axb"]


def test_pattern_matches_anywhere_in_the_key():
    matcher = compile_pattern("/api/media")

    assert matcher.search("GET:/api/media")
    assert matcher.search("GET:/api/media/photos")
    assert not matcher.search("GET:/api/items")
    assert compile_pattern("photos*3").search("GET:/api/media/photos/3")


def test_invalidate_with_unprefixed_path_pattern(clock):
    cache = ResponseCache(timer=clock)
    _fill(cache, 300, "GET:/api/photos", "GET:/api/media/photos", "GET:/api/items")

    assert cache.invalidate("/api/photos") == 1
    assert sorted(cache.tier_for(300).keys()) == ["GET:/api/items", "GET:/api/media/photos"]


@pytest.mark.parametrize("pattern", ["", None, 42])
def test_invalid_patterns_raise(pattern):
    cache = ResponseCache()
    with pytest.raises(InvalidPatternError):
        cache.invalidate(pattern)


def test_invalid_pattern_error_is_a_value_error():
    assert issubclass(InvalidPatternError, ValueError)


def test_flush_returns_total_and_empties_stats(clock):
    cache = ResponseCache(timer=clock)
    _fill(cache, 60, "a", "b")
    _fill(cache, 300, "c")
    _fill(cache, 1800, "d", "e")

    assert cache.flush() == 5
    stats = cache.stats()
    assert [stats[name]["keys"] for name in ("short", "medium", "long")] == [0, 0, 0]


def test_stats_reports_per_tier_counters(clock):
    cache = ResponseCache(max_entries=16, timer=clock)
    _fill(cache, 300, "GET:/api/items")
    tier = cache.tier_for(300)
    tier.get("GET:/api/items")
    tier.get("GET:/api/missing")

    stats = cache.stats()

    assert stats["medium"] == {
        "hits": 1,
        "misses": 1,
        "keys": 1,
        "ttl_seconds": 300,
        "max_entries": 16,
    }
    assert stats["short"]["ttl_seconds"] == 60
    assert stats["long"]["ttl_seconds"] == 1800


def test_sweep_purges_only_expired_entries(clock):
    cache = ResponseCache(timer=clock)
    _fill(cache, 60, "old")
    clock.advance(50)
    _fill(cache, 60, "fresh")
    clock.advance(20)

    assert cache.sweep() == 1
    assert cache.tier_for(60).keys() == ["fresh"]


def test_tier_sweep_interval_is_twice_the_ttl():
    cache = ResponseCache()
    assert {name: tier.sweep_interval for name, tier in cache.tiers.items()} == {
        "short": 120,
        "medium": 600,
        "long": 3600,
    }


@pytest.mark.asyncio
async def test_start_and_close_manage_sweep_tasks():
    cache = ResponseCache()

    cache.start()
    assert cache.running
    cache.start()  # idempotent

    await cache.close()
    assert not cache.running


@pytest.mark.asyncio
async def test_background_sweep_survives_failures(monkeypatch):
    cache = ResponseCache()
    tier = cache.tier_for(60)
    calls = []

    def flaky_sweep():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("sweep failed")
        return 0

    monkeypatch.setattr(tier, "sweep", flaky_sweep)
    tier.sweep_interval = 0.01
    for other in (cache.tier_for(300), cache.tier_for(1800)):
        other.sweep_interval = 3600

    cache.start()
    try:
        await asyncio.sleep(0.1)
    finally:
        await cache.close()

    assert len(calls) >= 2
