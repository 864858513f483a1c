"""
Design projects grouped by category (academic, professional, competition)
and by sector, with a public search.

Gallery images double as the project's content blocks, so both names are
returned on every project.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from ..auth import require_admin
from ..cache import MEDIUM_TTL, SHORT_TTL, ResponseCache
from ..config_loader import Config
from ..database import Database
from ..deps import get_config, get_db
from ..repository import ContentRepository
from ..utils import normalize_payload, to_api

CATEGORIES = ("academic", "professional", "competition")
REQUIRED_FIELDS = ("title", "summary", "description", "category", "sector", "main_image")
FIELD_ALIASES = {
    "contentBlocks": "gallery_images",
    "content_blocks": "gallery_images",
    "image": "main_image",
}
PROJECT_ORDER = "display_order ASC, created_at DESC"
FEATURED_LIMIT = 6


def to_project(row: dict, base_url: str) -> dict:
    project = to_api(row, base_url=base_url)
    project["contentBlocks"] = project.get("galleryImages") or []
    return project


def _projects(db: Database) -> ContentRepository:
    return ContentRepository(db, "design_projects", order_by=PROJECT_ORDER)


def build_router(cache: ResponseCache) -> APIRouter:
    router = APIRouter(
        route_class=cache.invalidate_on_write("GET:/api/design*", "GET:/api/home*")
    )

    async def project_list(db: Database, base_url: str, **where: Any) -> dict:
        rows = await _projects(db).list_rows(where=where or None)
        return {"success": True, "data": [to_project(row, base_url) for row in rows]}

    @cache.cached_get(router, "/projects", MEDIUM_TTL)
    async def list_projects(
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        return await project_list(db, app_config.base_url)

    @cache.cached_get(router, "/projects/{category}", MEDIUM_TTL)
    async def list_projects_in_category(
        category: str,
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        return await project_list(db, app_config.base_url, category=category)

    @cache.cached_get(router, "/sector/{sector}", MEDIUM_TTL)
    async def list_projects_in_sector(
        sector: str,
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        return await project_list(db, app_config.base_url, sector=sector)

    @cache.cached_get(router, "/project/{project_id}", MEDIUM_TTL)
    async def get_project(
        project_id: int,
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        row = await _projects(db).get(project_id, published_only=True)
        if row is None:
            raise HTTPException(status_code=404, detail="Design project not found")
        return {"success": True, "data": to_project(row, app_config.base_url)}

    @cache.cached_get(router, "/featured", MEDIUM_TTL)
    async def list_featured_projects(
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        rows = await _projects(db).list_rows(where={"is_featured": True}, limit=FEATURED_LIMIT)
        return {"success": True, "data": [to_project(row, app_config.base_url) for row in rows]}

    @cache.cached_get(router, "/sectors", MEDIUM_TTL)
    async def list_sectors(db: Database = Depends(get_db)) -> dict:
        rows = await db.fetch_all(
            "SELECT DISTINCT sector FROM design_projects "
            "WHERE sector IS NOT NULL AND is_published = 1 AND status = 'published' "
            "ORDER BY sector"
        )
        return {"success": True, "data": [row["sector"] for row in rows]}

    @cache.cached_get(router, "/search", SHORT_TTL)
    async def search_projects(
        q: str | None = None,
        category: str | None = None,
        sector: str | None = None,
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        """Case-insensitive text search over title, summary and description."""
        sql = "SELECT * FROM design_projects WHERE is_published = 1 AND status = 'published'"
        params: list[Any] = []
        if q:
            sql += " AND (title LIKE ? OR summary LIKE ? OR description LIKE ?)"
            params.extend([f"%{q}%"] * 3)
        if category:
            sql += " AND category = ?"
            params.append(category)
        if sector:
            sql += " AND sector = ?"
            params.append(sector)
        rows = await db.fetch_all(f"{sql} ORDER BY {PROJECT_ORDER}", tuple(params))
        return {
            "success": True,
            "data": [to_project(row, app_config.base_url) for row in rows],
            "count": len(rows),
        }

    # ── Admin ─────────────────────────────────────────────────────────────

    @router.get("/admin/projects")
    async def list_all_projects(
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        rows = await _projects(db).list_rows(
            published_only=False, order_by=f"category ASC, {PROJECT_ORDER}"
        )
        return {"success": True, "data": [to_project(row, app_config.base_url) for row in rows]}

    @router.get("/admin/projects/{project_id}")
    async def get_any_project(
        project_id: int,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        row = await _projects(db).get(project_id)
        if row is None:
            raise HTTPException(status_code=404, detail="Design project not found")
        return {"success": True, "data": to_project(row, app_config.base_url)}

    @router.get("/admin/category/{category}")
    async def list_all_in_category(
        category: str,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        rows = await _projects(db).list_rows(published_only=False, where={"category": category})
        return {"success": True, "data": [to_project(row, app_config.base_url) for row in rows]}

    @router.get("/admin/sector/{sector}")
    async def list_all_in_sector(
        sector: str,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        rows = await _projects(db).list_rows(published_only=False, where={"sector": sector})
        return {"success": True, "data": [to_project(row, app_config.base_url) for row in rows]}

    @router.get("/admin/stats")
    async def project_stats(
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
    ) -> dict:
        repo = _projects(db)
        total = await repo.count(published_only=False)
        published = await repo.count()
        sectors = await db.fetch_all(
            "SELECT sector, COUNT(*) AS count FROM design_projects "
            "WHERE sector IS NOT NULL GROUP BY sector ORDER BY count DESC"
        )
        data: dict[str, Any] = {"total": total}
        for category in CATEGORIES:
            data[category] = await repo.count(published_only=False, where={"category": category})
        data.update(
            featured=await repo.count(published_only=False, where={"is_featured": True}),
            published=published,
            unpublished=total - published,
            sectors={row["sector"]: row["count"] for row in sectors},
        )
        return {"success": True, "data": data}

    @router.post("/projects", status_code=201)
    @router.post("/admin/projects", status_code=201)
    async def create_project(
        payload: dict[str, Any] = Body(...),
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        repo = _projects(db)
        values = normalize_payload(payload, await repo.columns(), FIELD_ALIASES)
        if any(not values.get(field) for field in REQUIRED_FIELDS):
            raise HTTPException(
                status_code=400,
                detail=f"Missing required fields: {', '.join(REQUIRED_FIELDS)} are required",
            )
        values.setdefault("gallery_images", [])
        if values.get("is_published") is False:
            values["status"] = "draft"
        row = await repo.create(values)
        return {
            "success": True,
            "message": "Design project created successfully",
            "data": to_project(row, app_config.base_url),
        }

    @router.patch("/projects/{project_id}/toggle")
    async def toggle_published(
        project_id: int,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        repo = _projects(db)
        current = await repo.get(project_id)
        if current is None:
            raise HTTPException(status_code=404, detail="Design project not found")
        published = not current["is_published"]
        row = await repo.update(
            project_id,
            {"is_published": published, "status": "published" if published else "draft"},
        )
        state = "published" if published else "unpublished"
        return {
            "success": True,
            "message": f"Design project {state} successfully",
            "data": to_project(row, app_config.base_url),
        }

    @router.patch("/projects/{project_id}/toggle-featured")
    async def toggle_featured(
        project_id: int,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        repo = _projects(db)
        current = await repo.get(project_id)
        if current is None:
            raise HTTPException(status_code=404, detail="Design project not found")
        featured = not current["is_featured"]
        row = await repo.update(project_id, {"is_featured": featured})
        state = "featured" if featured else "unfeatured"
        return {
            "success": True,
            "message": f"Design project {state} successfully",
            "data": to_project(row, app_config.base_url),
        }

    @router.put("/projects/{project_id}")
    @router.put("/admin/projects/{project_id}")
    async def update_project(
        project_id: int,
        payload: dict[str, Any] = Body(...),
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        repo = _projects(db)
        values = normalize_payload(payload, await repo.columns(), FIELD_ALIASES)
        if not values:
            raise HTTPException(status_code=400, detail="No valid fields to update")
        # An empty image field keeps the current main image.
        if not values.get("main_image", True):
            del values["main_image"]
        row = await repo.update(project_id, values)
        if row is None:
            raise HTTPException(status_code=404, detail="Design project not found")
        return {
            "success": True,
            "message": "Design project updated successfully",
            "data": to_project(row, app_config.base_url),
        }

    @router.delete("/projects/{project_id}")
    async def delete_project(
        project_id: int,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
    ) -> dict:
        row = await _projects(db).delete(project_id)
        if row is None:
            raise HTTPException(status_code=404, detail="Design project not found")
        return {"success": True, "message": "Design project deleted successfully"}

    return router
