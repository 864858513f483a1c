"""
Service health and discovery endpoints.

None of these are cached: they report live database state.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from ..database import Database
from ..deps import get_db

logger = logging.getLogger(__name__)

router = APIRouter()

COUNTED_TABLES = (
    "items",
    "media_photos",
    "media_videos",
    "media_designs",
    "media_testimonials",
    "news_articles",
    "events",
    "education_workshops",
    "education_tutorials",
    "education_exhibitions",
    "community_stories",
    "contact_submissions",
    "newsletter_subscribers",
    "research_articles",
    "design_projects",
    "architecture_colleagues_team",
)

ENDPOINTS = {
    "auth": "/api/auth",
    "items": "/api/items",
    "media": "/api/media",
    "newsevents": "/api/newsevents",
    "education": "/api/education",
    "getInvolved": "/api/get-involved",
    "contact": "/api/contact",
    "thecolleagueuni": "/api/thecolleagueuni",
    "research": "/api/research",
    "design": "/api/design",
    "newsletter": "/api/newsletter",
    "upload": "/api/upload",
    "home": "/api/home",
    "cache": "/api/cache",
    "health": "/api/health",
}


@router.get("/api/health")
async def health(db: Database = Depends(get_db)) -> dict:
    """
    Health check endpoint.

    Reports database connectivity and row counts for the main content tables.
    """
    if not await db.ping():
        return {"status": "degraded", "database": "disconnected"}

    counts = {}
    for table in COUNTED_TABLES:
        counts[table] = await db.fetch_value(f"SELECT COUNT(*) FROM {table}")
    return {"status": "ok", "database": "connected", "tables": counts}


@router.get("/api")
async def api_index() -> dict:
    return {"message": "ASPIRE Design Lab API", "endpoints": ENDPOINTS}


@router.get("/")
async def root() -> dict:
    return {"message": "ASPIRE Design Lab API is running", "api": "/api", "health": "/api/health"}


@router.get("/robots.txt", response_class=PlainTextResponse)
async def robots_txt() -> str:
    """Tell crawlers to skip every path of the API."""
    return "User-agent: *\nDisallow: /"
