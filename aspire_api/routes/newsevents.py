"""News articles and events, published by admins and read by the public site."""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from ..auth import optional_admin, require_admin
from ..cache import MEDIUM_TTL, SHORT_TTL, ResponseCache
from ..config_loader import Config
from ..database import Database
from ..deps import get_config, get_db
from ..models import EventCreate, FeatureToggle, NewsCreate, PublishToggle
from ..repository import ContentRepository
from ..utils import normalize_payload, to_api

KINDS = {
    "news": ("news_articles", "Article", "COALESCE(date, created_at) DESC, id DESC"),
    "events": ("events", "Event", "COALESCE(event_date, created_at) ASC, id ASC"),
}

RENAMES = {"image_url": "image"}
FIELD_ALIASES = {"image": "image_url", "imageUrl": "image_url"}
FEATURED_LIMIT = 3


def _repo(db: Database, kind: str) -> ContentRepository:
    if kind not in KINDS:
        raise HTTPException(status_code=400, detail=f"Invalid content type: {kind}")
    table, _, order_by = KINDS[kind]
    return ContentRepository(db, table, order_by=order_by)


def _shape(rows: list[dict], base_url: str) -> list[dict]:
    return [to_api(row, base_url=base_url, renames=RENAMES) for row in rows]


def _list_endpoint(kind: str):
    async def list_entries(
        db: Database = Depends(get_db),
        admin: dict | None = Depends(optional_admin),
        app_config: Config = Depends(get_config),
    ) -> list[dict]:
        # Admins see drafts too; their requests never reach the cache.
        rows = await _repo(db, kind).list_rows(published_only=admin is None)
        return _shape(rows, app_config.base_url)

    list_entries.__name__ = f"list_{kind}"
    return list_entries


def _detail_endpoint(kind: str):
    label = KINDS[kind][1]

    async def get_entry(
        entry_id: int,
        db: Database = Depends(get_db),
        admin: dict | None = Depends(optional_admin),
        app_config: Config = Depends(get_config),
    ) -> dict:
        row = await _repo(db, kind).get(entry_id, published_only=admin is None)
        if row is None:
            raise HTTPException(status_code=404, detail=f"{label} not found")
        return to_api(row, base_url=app_config.base_url, renames=RENAMES)

    get_entry.__name__ = f"get_{kind}_entry"
    return get_entry


def _create_endpoint(kind: str, model: type):
    async def create_entry(
        payload: model,  # type: ignore[valid-type]
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        row = await _repo(db, kind).create(payload.to_columns())
        return to_api(row, base_url=app_config.base_url, renames=RENAMES)

    create_entry.__name__ = f"create_{kind}_entry"
    return create_entry


def build_router(cache: ResponseCache) -> APIRouter:
    router = APIRouter(
        route_class=cache.invalidate_on_write("GET:/api/newsevents*", "GET:/api/home*")
    )

    @cache.cached_get(router, "/all", MEDIUM_TTL)
    async def list_all(
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        return {
            kind: _shape(await _repo(db, kind).list_rows(), app_config.base_url) for kind in KINDS
        }

    @cache.cached_get(router, "/featured", SHORT_TTL)
    async def featured(
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        return {
            kind: _shape(
                await _repo(db, kind).list_rows(where={"is_featured": True}, limit=FEATURED_LIMIT),
                app_config.base_url,
            )
            for kind in KINDS
        }

    for kind, model in (("news", NewsCreate), ("events", EventCreate)):
        cache.cached_get(router, f"/{kind}", MEDIUM_TTL)(_list_endpoint(kind))
        cache.cached_get(router, f"/{kind}/{{entry_id}}", MEDIUM_TTL)(_detail_endpoint(kind))
        router.add_api_route(
            f"/{kind}", _create_endpoint(kind, model), methods=["POST"], status_code=201
        )

    @router.put("/{kind}/{entry_id}/publish")
    async def toggle_published(
        kind: str,
        entry_id: int,
        payload: PublishToggle,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        if payload.is_published is None:
            raise HTTPException(status_code=400, detail="isPublished is required")
        row = await _repo(db, kind).update(
            entry_id,
            {
                "is_published": payload.is_published,
                "status": "published" if payload.is_published else "draft",
            },
        )
        if row is None:
            raise HTTPException(status_code=404, detail=f"{KINDS[kind][1]} not found")
        return to_api(row, base_url=app_config.base_url, renames=RENAMES)

    @router.put("/{kind}/{entry_id}/feature")
    async def toggle_featured(
        kind: str,
        entry_id: int,
        payload: FeatureToggle,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        featured = payload.value()
        if featured is None:
            raise HTTPException(status_code=400, detail="featured flag is required")
        row = await _repo(db, kind).update(entry_id, {"is_featured": featured})
        if row is None:
            raise HTTPException(status_code=404, detail=f"{KINDS[kind][1]} not found")
        return to_api(row, base_url=app_config.base_url, renames=RENAMES)

    @router.put("/{kind}/{entry_id}")
    async def update_entry(
        kind: str,
        entry_id: int,
        payload: dict[str, Any] = Body(...),
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        repo = _repo(db, kind)
        values = normalize_payload(payload, await repo.columns(), FIELD_ALIASES)
        if not values:
            raise HTTPException(status_code=400, detail="No valid fields to update")
        row = await repo.update(entry_id, values)
        if row is None:
            raise HTTPException(status_code=404, detail=f"{KINDS[kind][1]} not found")
        return to_api(row, base_url=app_config.base_url, renames=RENAMES)

    @router.delete("/{kind}/{entry_id}")
    async def delete_entry(
        kind: str,
        entry_id: int,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
    ) -> dict:
        row = await _repo(db, kind).delete(entry_id)
        if row is None:
            raise HTTPException(status_code=404, detail=f"{KINDS[kind][1]} not found")
        return {"success": True, "message": f"{KINDS[kind][1]} deleted successfully"}

    return router
