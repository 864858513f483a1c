import logging
import pathlib
import sys
from typing import Any

import pytest
from fastapi import APIRouter, Body, FastAPI, HTTPException
from fastapi.testclient import TestClient

# Ensure repo root on sys.path for direct module imports when running tests locally.
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from aspire_api.cache import CACHE_STATUS_HEADER, MEDIUM_TTL, SHORT_TTL, ResponseCache


class _PhotoStore:
    """In-memory photo table that counts handler invocations."""

    def __init__(self):
        self.photos = [{"id": 1, "title": "Atrium"}]
        self.calls = 0


def _build_app(cache: ResponseCache, store: _PhotoStore) -> FastAPI:
    router = APIRouter(route_class=cache.invalidate_on_write("GET:/api/photos*"))

    @cache.cached_get(router, "/photos", MEDIUM_TTL)
    async def list_photos(category: str | None = None) -> list[dict]:
        store.calls += 1
        return store.photos

    @cache.cached_get(router, "/photos/{photo_id}", MEDIUM_TTL)
    async def get_photo(photo_id: int) -> dict:
        store.calls += 1
        for photo in store.photos:
            if photo["id"] == photo_id:
                return photo
        raise HTTPException(status_code=404, detail="Photo not found")

    @router.post("/photos", status_code=201)
    async def add_photo(payload: dict[str, Any] = Body(...)) -> dict:
        if not payload.get("title"):
            raise HTTPException(status_code=400, detail="Title is required")
        photo = {"id": len(store.photos) + 1, "title": payload["title"]}
        store.photos.append(photo)
        return photo

    @cache.cached_get(router, "/stats", SHORT_TTL, key_fn=lambda descriptor: 1 / 0)
    async def stats() -> dict:
        store.calls += 1
        return {"photos": len(store.photos)}

    @cache.cached_get(
        router,
        "/albums/{album}",
        MEDIUM_TTL,
        key_fn=lambda descriptor: f"album:{descriptor.path_params['album']}",
    )
    async def album(album: str) -> dict:
        store.calls += 1
        return {"album": album}

    app = FastAPI()
    app.include_router(router, prefix="/api")
    return app


@pytest.fixture
def cache(clock):
    return ResponseCache(timer=clock)


@pytest.fixture
def store():
    return _PhotoStore()


@pytest.fixture
def api(cache, store):
    return TestClient(_build_app(cache, store))


def test_photo_listing_is_cached_and_invalidated_by_writes(api, cache, store, caplog):
    first = api.get("/api/photos")
    assert first.status_code == 200
    assert first.headers[CACHE_STATUS_HEADER] == "MISS"
    assert cache.tier_for(MEDIUM_TTL).keys() == ["GET:/api/photos"]

    second = api.get("/api/photos")
    assert second.headers[CACHE_STATUS_HEADER] == "HIT"
    assert second.content == first.content
    assert store.calls == 1

    with caplog.at_level(logging.INFO, logger="aspire_api.cache"):
        created = api.post("/api/photos", json={"title": "Courtyard"})
    assert created.status_code == 201
    assert "Cleared 1 cache entries matching: GET:/api/photos*" in caplog.text
    assert cache.tier_for(MEDIUM_TTL).keys() == []

    third = api.get("/api/photos")
    assert third.headers[CACHE_STATUS_HEADER] == "MISS"
    assert [photo["title"] for photo in third.json()] == ["Atrium", "Courtyard"]
    assert store.calls == 2


def test_failed_write_does_not_invalidate(api, cache):
    api.get("/api/photos")

    response = api.post("/api/photos", json={})

    assert response.status_code == 400
    assert cache.tier_for(MEDIUM_TTL).keys() == ["GET:/api/photos"]


def test_authorized_requests_bypass_the_cache(api, cache, store):
    headers = {"Authorization": "Bearer anything"}

    first = api.get("/api/photos", headers=headers)
    second = api.get("/api/photos", headers=headers)

    assert first.status_code == second.status_code == 200
    assert CACHE_STATUS_HEADER not in first.headers
    assert store.calls == 2
    assert cache.stats()["medium"]["keys"] == 0


def test_authorized_request_does_not_read_existing_entry(api, store):
    api.get("/api/photos")
    store.photos.append({"id": 2, "title": "Draft"})

    response = api.get("/api/photos", headers={"Authorization": "Bearer token"})

    assert len(response.json()) == 2
    assert store.calls == 2


def test_error_responses_are_not_stored(api, cache, store):
    assert api.get("/api/photos/99").status_code == 404
    assert api.get("/api/photos/99").status_code == 404

    assert store.calls == 2
    assert cache.stats()["medium"]["keys"] == 0


def test_query_order_does_not_change_the_key(api, cache, store):
    api.get("/api/photos?category=b&album=a")
    response = api.get("/api/photos?album=a&category=b")

    assert response.headers[CACHE_STATUS_HEADER] == "HIT"
    assert store.calls == 1
    assert cache.tier_for(MEDIUM_TTL).keys() == ["GET:/api/photos?album=a&category=b"]


def test_entries_expire_after_ttl(api, clock, store):
    api.get("/api/photos")
    clock.advance(MEDIUM_TTL + 1)

    response = api.get("/api/photos")

    assert response.headers[CACHE_STATUS_HEADER] == "MISS"
    assert store.calls == 2


def test_broken_key_function_uses_default_key(api, cache, store):
    api.get("/api/stats")
    response = api.get("/api/stats")

    assert response.headers[CACHE_STATUS_HEADER] == "HIT"
    assert store.calls == 1
    assert cache.tier_for(SHORT_TTL).keys() == ["GET:/api/stats"]


def test_custom_key_function(api, cache):
    api.get("/api/albums/interiors")

    assert cache.tier_for(MEDIUM_TTL).keys() == ["album:interiors"]
    assert cache.invalidate("album:*") == 1


def test_hit_preserves_json_media_type(api):
    api.get("/api/photos")
    response = api.get("/api/photos")

    assert response.headers["content-type"].startswith("application/json")
    assert response.json() == [{"id": 1, "title": "Atrium"}]


def test_query_is_kept_as_sent(api, cache):
    api.get("/api/photos?category=a%20b")

    assert cache.tier_for(MEDIUM_TTL).keys() == ["GET:/api/photos?category=a%20b"]
    assert cache.invalidate("GET:/api/photos?category=a%20b") == 1
