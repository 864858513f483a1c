"""
HTTP routers of the Aspire CMS API.

Routers whose responses are cached are built by factories that receive the
application's ``ResponseCache``; the rest are plain module-level routers.
"""

from fastapi import FastAPI

from ..cache import ResponseCache
from . import (
    auth,
    cache_admin,
    colleague_uni,
    contact,
    design,
    education,
    get_involved,
    health,
    home,
    items,
    media,
    newsevents,
    newsletter,
    research,
    upload,
)


def register_routes(app: FastAPI, cache: ResponseCache) -> None:
    """Mount every router under its API prefix."""
    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(items.build_router(cache), prefix="/api/items", tags=["items"])
    app.include_router(media.build_router(cache), prefix="/api/media", tags=["media"])
    app.include_router(
        newsevents.build_router(cache), prefix="/api/newsevents", tags=["newsevents"]
    )
    app.include_router(
        education.build_router(cache), prefix="/api/education", tags=["education"]
    )
    app.include_router(
        get_involved.build_router(cache), prefix="/api/get-involved", tags=["get-involved"]
    )
    app.include_router(contact.build_router(cache), prefix="/api/contact", tags=["contact"])
    app.include_router(
        colleague_uni.build_router(cache), prefix="/api/thecolleagueuni", tags=["thecolleagueuni"]
    )
    app.include_router(research.build_router(cache), prefix="/api/research", tags=["research"])
    app.include_router(design.build_router(cache), prefix="/api/design", tags=["design"])
    app.include_router(newsletter.router, prefix="/api/newsletter", tags=["newsletter"])
    app.include_router(upload.router, prefix="/api/upload", tags=["upload"])
    app.include_router(home.build_router(cache), prefix="/api/home", tags=["home"])
    app.include_router(cache_admin.build_router(cache), prefix="/api/cache", tags=["cache"])
    app.include_router(health.router, tags=["health"])


__all__ = ["register_routes"]
