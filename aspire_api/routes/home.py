"""Home page aggregate: latest items, research articles, featured photos and upcoming events."""

from fastapi import APIRouter, Depends

from ..cache import MEDIUM_TTL, ResponseCache
from ..config_loader import Config
from ..database import Database
from ..deps import get_config, get_db
from ..repository import ContentRepository
from ..utils import full_url
from .research import published_articles

HOME_LIMIT = 3
PHOTO_LIMIT = 6


def build_router(cache: ResponseCache) -> APIRouter:
    router = APIRouter()

    @cache.cached_get(router, "", MEDIUM_TTL)
    async def home(
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        base_url = app_config.base_url
        items = await ContentRepository(db, "items").list_rows(limit=HOME_LIMIT)
        photos = await ContentRepository(db, "media_photos").list_rows(
            where={"is_featured": True},
            order_by="display_order ASC, created_at DESC",
            limit=PHOTO_LIMIT,
        )
        events = await db.fetch_all(
            "SELECT * FROM events WHERE is_published = 1 AND status = 'published' "
            "AND event_date >= date('now') ORDER BY event_date ASC LIMIT ?",
            (HOME_LIMIT,),
        )
        articles = await published_articles(db, limit=HOME_LIMIT)
        return {
            "success": True,
            "data": {
                "featuredDesigns": [
                    {
                        "id": item["id"],
                        "title": item["title"],
                        "type": item["type"],
                        "image": full_url(item["image"], base_url),
                        "description": item["content"] or "",
                    }
                    for item in items
                ],
                "researchHighlights": [
                    {
                        "id": article["id"],
                        "title": article["title"],
                        "author": "ASPIRE Team",
                        "date": (article["created_at"] or "")[:10],
                        "excerpt": article["description"] or "Research content coming soon...",
                    }
                    for article in articles
                ],
                "featuredPhotos": [
                    {
                        "id": photo["id"],
                        "title": photo["title"],
                        "image": full_url(photo["image_url"], base_url),
                        "category": photo["category"],
                    }
                    for photo in photos
                ],
                "upcomingEvents": [
                    {
                        "id": event["id"],
                        "title": event["title"],
                        "date": event["event_date"],
                        "time": event["event_time"] or "TBA",
                        "location": event["location"] or "Location TBA",
                        "image": full_url(event["image_url"], base_url),
                    }
                    for event in events
                ],
            },
        }

    return router
