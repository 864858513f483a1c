"""
Get-involved forms (membership, donations, feedback, ideas, partnerships)
and the community stories shown on the public site.

Form submissions are public; reviewing them is admin-only. Only the stories
listing is cached, so only story changes invalidate it.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..auth import require_admin
from ..cache import LONG_TTL, ResponseCache
from ..config_loader import Config
from ..database import Database
from ..deps import get_config, get_db
from ..models import (
    DonationCreate,
    FeedbackCreate,
    IdeaCreate,
    MembershipCreate,
    PartnershipCreate,
    StatusUpdate,
    StoryCreate,
)
from ..repository import ContentRepository
from ..utils import is_valid_email, to_api

logger = logging.getLogger(__name__)

STORIES_PATTERN = "GET:/api/get-involved/stories*"

# path segment -> (table, request model, confirmation message)
SUBMISSIONS = {
    "membership": (
        "membership_applications",
        MembershipCreate,
        "Membership application submitted successfully",
    ),
    "donate": ("donations", DonationCreate, "Donation recorded successfully. Thank you!"),
    "feedback": ("feedback_submissions", FeedbackCreate, "Feedback submitted successfully"),
    "ideas": ("idea_submissions", IdeaCreate, "Idea submitted successfully"),
    "partnership": (
        "partnership_inquiries",
        PartnershipCreate,
        "Partnership inquiry submitted successfully",
    ),
}

# admin listing name -> table
ADMIN_TABLES = {
    "membership": "membership_applications",
    "donations": "donations",
    "feedback": "feedback_submissions",
    "ideas": "idea_submissions",
    "partnership": "partnership_inquiries",
    "stories": "community_stories",
}


def _admin_repo(db: Database, kind: str) -> ContentRepository:
    table = ADMIN_TABLES.get(kind)
    if table is None:
        raise HTTPException(status_code=400, detail=f"Invalid submission type: {kind}")
    return ContentRepository(db, table)


def _submission_endpoint(table: str, model: type[BaseModel], message: str):
    async def submit(
        payload: model,  # type: ignore[valid-type]
        db: Database = Depends(get_db),
    ) -> dict:
        if not is_valid_email(payload.email):
            raise HTTPException(status_code=400, detail="Invalid email address")
        row = await ContentRepository(db, table).create(payload.to_columns())
        logger.info("New %s submission #%s", table, row["id"])
        return {"success": True, "message": message, "data": {"id": row["id"]}}

    submit.__name__ = f"submit_{table}"
    return submit


def build_router(cache: ResponseCache) -> APIRouter:
    router = APIRouter()

    for segment, (table, model, message) in SUBMISSIONS.items():
        router.add_api_route(
            f"/{segment}",
            _submission_endpoint(table, model, message),
            methods=["POST"],
            status_code=201,
        )

    @cache.cached_get(router, "/stories", LONG_TTL)
    async def list_stories(
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        rows = await ContentRepository(db, "community_stories").list_rows(
            order_by="is_featured DESC, created_at DESC, id DESC"
        )
        return {"success": True, "data": [to_api(row, base_url=app_config.base_url) for row in rows]}

    # ── Admin ─────────────────────────────────────────────────────────────

    @router.get("/admin/{kind}")
    async def list_submissions(
        kind: str,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        rows = await _admin_repo(db, kind).list_rows(published_only=False)
        return {"success": True, "data": [to_api(row, base_url=app_config.base_url) for row in rows]}

    @router.post("/admin/stories", status_code=201)
    async def create_story(
        payload: StoryCreate,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        row = await ContentRepository(db, "community_stories").create(payload.to_columns())
        cache.invalidate(STORIES_PATTERN)
        return {"success": True, "data": to_api(row, base_url=app_config.base_url)}

    @router.put("/admin/stories/{story_id}")
    async def update_story(
        story_id: int,
        payload: StoryCreate,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        row = await ContentRepository(db, "community_stories").update(
            story_id, payload.to_columns()
        )
        if row is None:
            raise HTTPException(status_code=404, detail="Story not found")
        cache.invalidate(STORIES_PATTERN)
        return {"success": True, "data": to_api(row, base_url=app_config.base_url)}

    @router.put("/admin/{kind}/{row_id}/status")
    async def update_status(
        kind: str,
        row_id: int,
        payload: StatusUpdate,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        row = await _admin_repo(db, kind).update(row_id, payload.model_dump(exclude_none=True))
        if row is None:
            raise HTTPException(status_code=404, detail="Record not found")
        if kind == "stories":
            cache.invalidate(STORIES_PATTERN)
        return {"success": True, "data": to_api(row, base_url=app_config.base_url)}

    @router.delete("/admin/{kind}/{row_id}")
    async def delete_submission(
        kind: str,
        row_id: int,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
    ) -> dict:
        row = await _admin_repo(db, kind).delete(row_id)
        if row is None:
            raise HTTPException(status_code=404, detail="Record not found")
        if kind == "stories":
            cache.invalidate(STORIES_PATTERN)
        return {"success": True, "message": "Record deleted successfully"}

    return router
