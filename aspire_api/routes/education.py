"""Education programme: workshops, tutorials and exhibitions share one set of handlers."""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from ..auth import require_admin
from ..cache import MEDIUM_TTL, SHORT_TTL, ResponseCache
from ..config_loader import Config
from ..database import Database
from ..deps import get_config, get_db
from ..models import FeatureToggle, PublishToggle
from ..repository import ContentRepository
from ..utils import normalize_payload, to_api

KINDS = {
    "workshops": ("education_workshops", "Workshop"),
    "tutorials": ("education_tutorials", "Tutorial"),
    "exhibitions": ("education_exhibitions", "Exhibition"),
}

FIELD_ALIASES = {"image": "image_url", "imageUrl": "image_url", "instructorBio": "instructor_bio"}
RENAMES = {"image_url": "image"}


def _repo(db: Database, kind: str) -> ContentRepository:
    if kind not in KINDS:
        raise HTTPException(status_code=404, detail=f"Unknown education section: {kind}")
    return ContentRepository(db, KINDS[kind][0])


def _list_endpoint(kind: str):
    async def list_entries(
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> list[dict]:
        rows = await _repo(db, kind).list_rows()
        return [to_api(row, base_url=app_config.base_url, renames=RENAMES) for row in rows]

    list_entries.__name__ = f"list_{kind}"
    return list_entries


def build_router(cache: ResponseCache) -> APIRouter:
    router = APIRouter(
        route_class=cache.invalidate_on_write("GET:/api/education*", "GET:/api/home*")
    )

    @cache.cached_get(router, "/stats", SHORT_TTL)
    async def education_stats(db: Database = Depends(get_db)) -> dict:
        return {kind: await _repo(db, kind).count() for kind in KINDS}

    for kind in KINDS:
        cache.cached_get(router, f"/{kind}", MEDIUM_TTL)(_list_endpoint(kind))

    # Registered ahead of /{kind}/{entry_id} so "admin" is never read as a kind.
    @router.get("/admin/{kind}")
    async def list_all_entries(
        kind: str,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> list[dict]:
        rows = await _repo(db, kind).list_rows(published_only=False)
        return [to_api(row, base_url=app_config.base_url, renames=RENAMES) for row in rows]

    @cache.cached_get(router, "/{kind}/{entry_id}", MEDIUM_TTL)
    async def get_entry(
        kind: str,
        entry_id: int,
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        row = await _repo(db, kind).get(entry_id, published_only=True)
        if row is None:
            raise HTTPException(status_code=404, detail=f"{KINDS[kind][1]} not found")
        return to_api(row, base_url=app_config.base_url, renames=RENAMES)

    @router.post("/{kind}", status_code=201)
    async def create_entry(
        kind: str,
        payload: dict[str, Any] = Body(...),
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        repo = _repo(db, kind)
        values = normalize_payload(payload, await repo.columns(), FIELD_ALIASES)
        if not values.get("title"):
            raise HTTPException(status_code=400, detail="Title is required")
        row = await repo.create(values)
        return to_api(row, base_url=app_config.base_url, renames=RENAMES)

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
