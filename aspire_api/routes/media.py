"""
Media library: photos, videos, design drawings and testimonials.

Public reads are cached; every successful write drops the cached media and
home page responses.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from ..auth import require_admin
from ..cache import MEDIUM_TTL, SHORT_TTL, ResponseCache
from ..config_loader import Config
from ..database import Database
from ..deps import get_config, get_db
from ..models import (
    DesignCreate,
    FeatureToggle,
    MediaTestimonialCreate,
    PhotoCreate,
    StatusUpdate,
    VideoCreate,
)
from ..repository import ContentRepository
from ..utils import normalize_payload, to_api

MEDIA_TABLES = {
    "photos": "media_photos",
    "videos": "media_videos",
    "designs": "media_designs",
    "testimonials": "media_testimonials",
}

DISPLAY_ORDER = "display_order ASC, created_at DESC, id DESC"

# Output names used by the public site
RENAMES = {
    "photos": {"image_url": "image", "album_name": "album"},
    "videos": {"thumbnail_url": "thumbnail", "video_url": "video_src"},
    "designs": {"image_url": "image", "design_type": "type", "project_name": "project"},
    "testimonials": {"image_url": "image"},
}

# Alternate input names accepted on updates
FIELD_ALIASES = {
    "image": "image_url",
    "imageUrl": "image_url",
    "thumbnail": "thumbnail_url",
    "thumbnailUrl": "thumbnail_url",
    "videoSrc": "video_url",
    "videoUrl": "video_url",
    "url": "video_url",
    "album": "album_name",
    "albumName": "album_name",
    "project": "project_name",
    "projectName": "project_name",
    "type": "design_type",
    "designType": "design_type",
}

FEATURED_LIMIT = 6


def _repo(db: Database, media_type: str) -> ContentRepository:
    table = MEDIA_TABLES.get(media_type)
    if table is None:
        raise HTTPException(status_code=400, detail=f"Invalid media type: {media_type}")
    return ContentRepository(db, table, order_by=DISPLAY_ORDER)


def _shape(rows: list[dict], media_type: str, base_url: str) -> list[dict]:
    return [to_api(row, base_url=base_url, renames=RENAMES[media_type]) for row in rows]


def _list_endpoint(media_type: str):
    async def list_media(
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> list[dict]:
        rows = await _repo(db, media_type).list_rows()
        return _shape(rows, media_type, app_config.base_url)

    list_media.__name__ = f"list_{media_type}"
    return list_media


def _create_endpoint(media_type: str, model: type):
    async def create_media(
        payload: model,  # type: ignore[valid-type]
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        row = await _repo(db, media_type).create(payload.to_columns())
        return to_api(row, base_url=app_config.base_url, renames=RENAMES[media_type])

    create_media.__name__ = f"create_{media_type}"
    return create_media


def _detail_endpoint(media_type: str, label: str):
    async def get_media(
        item_id: int,
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        row = await _repo(db, media_type).get(item_id, published_only=True)
        if row is None:
            raise HTTPException(status_code=404, detail=f"{label} not found")
        return to_api(row, base_url=app_config.base_url, renames=RENAMES[media_type])

    get_media.__name__ = f"get_{media_type}"
    return get_media


def build_router(cache: ResponseCache) -> APIRouter:
    router = APIRouter(route_class=cache.invalidate_on_write("GET:/api/media*", "GET:/api/home*"))

    @cache.cached_get(router, "/stats", SHORT_TTL)
    async def media_stats(db: Database = Depends(get_db)) -> dict:
        """Published counts per media type."""
        return {
            media_type: await ContentRepository(db, table).count()
            for media_type, table in MEDIA_TABLES.items()
        }

    @cache.cached_get(router, "/galleries", MEDIUM_TTL)
    async def list_galleries(db: Database = Depends(get_db)) -> list[dict]:
        rows = await db.fetch_all(
            "SELECT album_name, COUNT(*) AS photo_count FROM media_photos "
            "WHERE is_published = 1 AND status = 'published' AND album_name IS NOT NULL "
            "GROUP BY album_name ORDER BY album_name"
        )
        return [{"album": row["album_name"], "photoCount": row["photo_count"]} for row in rows]

    @cache.cached_get(router, "/featured", SHORT_TTL)
    async def featured_media(
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        featured = {}
        for media_type in MEDIA_TABLES:
            rows = await _repo(db, media_type).list_rows(
                where={"is_featured": True}, limit=FEATURED_LIMIT
            )
            featured[media_type] = _shape(rows, media_type, app_config.base_url)
        return featured

    @cache.cached_get(router, "/photos/category/{category}", MEDIUM_TTL)
    async def photos_by_category(
        category: str,
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> list[dict]:
        rows = await _repo(db, "photos").list_rows(where={"category": category})
        return _shape(rows, "photos", app_config.base_url)

    for media_type in MEDIA_TABLES:
        cache.cached_get(router, f"/{media_type}", MEDIUM_TTL)(_list_endpoint(media_type))

    cache.cached_get(router, "/photos/{item_id}", MEDIUM_TTL)(_detail_endpoint("photos", "Photo"))
    cache.cached_get(router, "/videos/{item_id}", MEDIUM_TTL)(_detail_endpoint("videos", "Video"))

    # ── Admin ─────────────────────────────────────────────────────────────

    @router.get("/admin/{media_type}")
    async def list_all_media(
        media_type: str,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> list[dict]:
        rows = await _repo(db, media_type).list_rows(published_only=False)
        return _shape(rows, media_type, app_config.base_url)

    for media_type, model in (
        ("photos", PhotoCreate),
        ("videos", VideoCreate),
        ("designs", DesignCreate),
        ("testimonials", MediaTestimonialCreate),
    ):
        router.add_api_route(
            f"/{media_type}",
            _create_endpoint(media_type, model),
            methods=["POST"],
            status_code=201,
        )

    @router.put("/testimonials/{item_id}/status")
    async def update_testimonial_status(
        item_id: int,
        payload: StatusUpdate,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        row = await _repo(db, "testimonials").update(item_id, {"status": payload.status})
        if row is None:
            raise HTTPException(status_code=404, detail="Testimonial not found")
        return to_api(row, base_url=app_config.base_url, renames=RENAMES["testimonials"])

    @router.put("/{media_type}/{item_id}/feature")
    async def toggle_featured(
        media_type: str,
        item_id: int,
        payload: FeatureToggle,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        featured = payload.value()
        if featured is None:
            raise HTTPException(status_code=400, detail="featured flag is required")
        row = await _repo(db, media_type).update(item_id, {"is_featured": featured})
        if row is None:
            raise HTTPException(status_code=404, detail="Media item not found")
        return to_api(row, base_url=app_config.base_url, renames=RENAMES[media_type])

    @router.put("/{media_type}/{item_id}")
    async def update_media(
        media_type: str,
        item_id: int,
        payload: dict[str, Any] = Body(...),
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        repo = _repo(db, media_type)
        values = normalize_payload(payload, await repo.columns(), FIELD_ALIASES)
        if not values:
            raise HTTPException(status_code=400, detail="No valid fields to update")
        row = await repo.update(item_id, values)
        if row is None:
            raise HTTPException(status_code=404, detail="Media item not found")
        return to_api(row, base_url=app_config.base_url, renames=RENAMES[media_type])

    @router.delete("/{media_type}/{item_id}")
    async def delete_media(
        media_type: str,
        item_id: int,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
    ) -> dict:
        row = await _repo(db, media_type).delete(item_id)
        if row is None:
            raise HTTPException(status_code=404, detail="Media item not found")
        return {"success": True, "message": "Media item deleted successfully", "id": item_id}

    return router
