"""
Research & insights: articles, sustainable practices, climate strategies,
social studies and the headline statistics shown beside them.

Every public listing is cached; any successful admin write clears the
research listings and the home aggregate that quotes recent articles.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from ..auth import require_admin
from ..cache import MEDIUM_TTL, ResponseCache
from ..config_loader import Config
from ..database import Database
from ..deps import get_config, get_db
from ..repository import ContentRepository
from ..utils import normalize_payload, to_api

# path segment -> (table, label, required fields)
SECTIONS = {
    "articles": ("research_articles", "Research article", ("title",)),
    "sustainable-practices": ("sustainable_practices", "Sustainable practice", ("title",)),
    "climate-strategies": ("climate_strategies", "Climate strategy", ("title",)),
    "social-studies": ("social_studies", "Social study", ("title",)),
    "stats": ("research_stats", "Research stat", ("stat_label", "stat_value")),
}

# Icons the site knows how to render; anything else falls back per section.
ICON_NAMES = frozenset(
    {
        "FaChartBar", "FaHospital", "FaIndustry", "FaGraduationCap", "FaBuilding",
        "FaLaptop", "FaRecycle", "FaSun", "FaBolt", "FaTint", "FaLeaf", "FaHardHat",
        "FaWater", "FaFire", "FaTemperatureHigh", "FaCloudRain", "FaHome", "FaUsers",
        "FaHeart", "FaHandsHelping", "FaBalanceScale", "FaPray", "FaChild",
    }
)

ARTICLE_ORDER = "year DESC, display_order ASC, id ASC"
ACTIVE_ORDER = "display_order ASC, id ASC"
ADMIN_ORDER = "display_order ASC, created_at DESC"


def _section(db: Database, section: str) -> tuple[ContentRepository, str, tuple[str, ...]]:
    if section not in SECTIONS:
        raise HTTPException(status_code=404, detail=f"Unknown research section: {section}")
    table, label, required = SECTIONS[section]
    return ContentRepository(db, table), label, required


def with_icon(row: dict, base_url: str, default_icon: str) -> dict:
    shaped = to_api(row, base_url=base_url)
    icon_name = row.get("icon_name")
    shaped["icon"] = icon_name if icon_name in ICON_NAMES else default_icon
    return shaped


async def active_rows(db: Database, table: str, **where: Any) -> list[dict]:
    return await ContentRepository(db, table).list_rows(
        published_only=False, where={"is_active": True, **where}, order_by=ACTIVE_ORDER
    )


async def published_articles(db: Database, limit: int | None = None) -> list[dict]:
    return await ContentRepository(db, "research_articles").list_rows(
        order_by=ARTICLE_ORDER, limit=limit
    )


def build_router(cache: ResponseCache) -> APIRouter:
    router = APIRouter(
        route_class=cache.invalidate_on_write("GET:/api/research*", "GET:/api/home*")
    )

    @cache.cached_get(router, "/overview", MEDIUM_TTL)
    async def research_overview(
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        stats = await active_rows(db, "research_stats", category="overview")
        return {
            "success": True,
            "data": {"stats": [to_api(row, base_url=app_config.base_url) for row in stats]},
        }

    @cache.cached_get(router, "/articles", MEDIUM_TTL)
    async def list_articles(
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        rows = await published_articles(db)
        return {
            "success": True,
            "data": [with_icon(row, app_config.base_url, "FaChartBar") for row in rows],
        }

    @cache.cached_get(router, "/sustainable-practices", MEDIUM_TTL)
    async def list_sustainable_practices(
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        base_url = app_config.base_url
        practices = await active_rows(db, "sustainable_practices")
        stats = await active_rows(db, "research_stats", category="sustainable")
        return {
            "success": True,
            "data": {
                "practices": [with_icon(row, base_url, "FaRecycle") for row in practices],
                "stats": [to_api(row, base_url=base_url) for row in stats],
            },
        }

    @cache.cached_get(router, "/climate-strategies", MEDIUM_TTL)
    async def list_climate_strategies(
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        rows = await active_rows(db, "climate_strategies")
        return {
            "success": True,
            "data": [with_icon(row, app_config.base_url, "FaWater") for row in rows],
        }

    @cache.cached_get(router, "/social-studies", MEDIUM_TTL)
    async def list_social_studies(
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        base_url = app_config.base_url
        studies = await active_rows(db, "social_studies")
        stats = await active_rows(db, "research_stats", category="social")
        return {
            "success": True,
            "data": {
                "studies": [with_icon(row, base_url, "FaUsers") for row in studies],
                "stats": [to_api(row, base_url=base_url) for row in stats],
            },
        }

    # ── Admin ─────────────────────────────────────────────────────────────

    @router.get("/admin")
    async def research_counts(
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
    ) -> dict:
        return {
            "success": True,
            "data": {
                "articlesCount": await db.fetch_value("SELECT COUNT(*) FROM research_articles"),
                "practicesCount": await db.fetch_value("SELECT COUNT(*) FROM sustainable_practices"),
                "strategiesCount": await db.fetch_value("SELECT COUNT(*) FROM climate_strategies"),
                "studiesCount": await db.fetch_value("SELECT COUNT(*) FROM social_studies"),
                "statsCount": await db.fetch_value("SELECT COUNT(*) FROM research_stats"),
            },
        }

    @router.get("/admin/all")
    async def research_everything(
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        async def everything(table: str, order_by: str) -> list[dict]:
            rows = await ContentRepository(db, table).list_rows(
                published_only=False, order_by=order_by
            )
            return [to_api(row, base_url=app_config.base_url) for row in rows]

        return {
            "success": True,
            "data": {
                "articles": await everything("research_articles", ADMIN_ORDER),
                "practices": await everything("sustainable_practices", ADMIN_ORDER),
                "strategies": await everything("climate_strategies", ADMIN_ORDER),
                "studies": await everything("social_studies", ADMIN_ORDER),
                "stats": await everything("research_stats", "category ASC, display_order ASC"),
            },
        }

    @router.post("/{section}", status_code=201)
    async def create_entry(
        section: str,
        payload: dict[str, Any] = Body(...),
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        repo, _label, required = _section(db, section)
        values = normalize_payload(payload, await repo.columns())
        missing = [field for field in required if not values.get(field)]
        if missing:
            raise HTTPException(
                status_code=400, detail=f"Missing required fields: {', '.join(missing)}"
            )
        row = await repo.create(values)
        return {"success": True, "data": to_api(row, base_url=app_config.base_url)}

    @router.patch("/articles/{article_id}/toggle")
    async def toggle_article(
        article_id: int,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        repo = ContentRepository(db, "research_articles")
        current = await repo.get(article_id)
        if current is None:
            raise HTTPException(status_code=404, detail="Research article not found")
        published = not current["is_published"]
        row = await repo.update(
            article_id,
            {"is_published": published, "status": "published" if published else "draft"},
        )
        return {"success": True, "data": to_api(row, base_url=app_config.base_url)}

    @router.put("/{section}/{entry_id}")
    async def update_entry(
        section: str,
        entry_id: int,
        payload: dict[str, Any] = Body(...),
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        repo, label, _required = _section(db, section)
        values = normalize_payload(payload, await repo.columns())
        if not values:
            raise HTTPException(status_code=400, detail="No valid fields to update")
        row = await repo.update(entry_id, values)
        if row is None:
            raise HTTPException(status_code=404, detail=f"{label} not found")
        return {"success": True, "data": to_api(row, base_url=app_config.base_url)}

    @router.delete("/{section}/{entry_id}")
    async def delete_entry(
        section: str,
        entry_id: int,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
    ) -> dict:
        repo, label, _required = _section(db, section)
        row = await repo.delete(entry_id)
        if row is None:
            raise HTTPException(status_code=404, detail=f"{label} not found")
        return {"success": True, "message": f"{label} deleted successfully"}

    return router
