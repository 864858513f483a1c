"""
The Architecture Colleagues Lab ("colleague uni"): team, mission, initiatives
and its own contact inbox.

Team, mission, initiatives and about pages are cached and cleared by any
successful admin write. The contact inbox lives on a separate router so a
public message never clears the cache.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from ..auth import require_admin
from ..cache import LONG_TTL, MEDIUM_TTL, ResponseCache
from ..config_loader import Config
from ..database import Database
from ..deps import get_config, get_db
from ..models import (
    ActiveToggle,
    ColleagueContact,
    InitiativeCreate,
    StatusUpdate,
    TeamMemberCreate,
)
from ..repository import ContentRepository
from ..utils import is_valid_email, normalize_payload, to_api

logger = logging.getLogger(__name__)

ACTIVE_ORDER = "display_order ASC, id ASC"

DEFAULT_MISSION = (
    "To democratize architectural education by creating a platform where students and "
    "professionals can learn from each other, regardless of geographic, economic, or "
    "hierarchical barriers."
)
DEFAULT_VISION = (
    "We envision a world where architectural development is continuous, collaborative, and "
    "integrated into daily practice through peer connections and organic learning."
)

ABOUT = {
    "title": "About The Architecture Colleagues Lab",
    "description": "Curious About What Rwandan (In) Architecture Really Is?",
    "content": [
        "Program of Rwandan architecture students passionate about learning, working, and "
        "studying together. Through the lens of culture, society, and practice, we explore how "
        "architecture can respond to today's challenges and give communities a stronger voice "
        "in shaping their spaces.",
        "We welcome architecture students, architects, professionals and anyone even without "
        "an architecture background who believes in design that speaks for the people.",
        "Let's connect and shape a future where architecture speaks for everyone.",
    ],
    "features": [
        {
            "title": "Our Story",
            "content": "Founded in 2025 as a project within ASPIRE Design Lab to bridge the gap "
            "between academia and professional practice, the lab became a peer-driven platform "
            "for research, dialogue, and design exploration.",
        },
        {
            "title": "Impact to Be Made",
            "content": "As students, we are not just preparing for the future, we are shaping "
            "it: we experiment, question, and collaborate to influence how spaces reflect "
            "culture and support communities.",
        },
        {
            "title": "Why This Matters",
            "content": "Architecture is a tool for change. Our student years are the perfect "
            "laboratory for innovation, a space where ideas can be fearlessly explored.",
        },
    ],
}


def _team(db: Database) -> ContentRepository:
    return ContentRepository(db, "architecture_colleagues_team", order_by=ACTIVE_ORDER)


def build_router(cache: ResponseCache) -> APIRouter:
    router = APIRouter()
    content = APIRouter(route_class=cache.invalidate_on_write("GET:/api/thecolleagueuni*"))

    # ── Team ──────────────────────────────────────────────────────────────

    @cache.cached_get(content, "/team", MEDIUM_TTL)
    async def list_team(
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        rows = await _team(db).list_rows(published_only=False, where={"is_active": True})
        return {"success": True, "data": [to_api(row, base_url=app_config.base_url) for row in rows]}

    @cache.cached_get(content, "/team/{member_id}", MEDIUM_TTL)
    async def get_team_member(
        member_id: int,
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        row = await _team(db).get(member_id)
        if row is None:
            raise HTTPException(status_code=404, detail="Team member not found")
        return {"success": True, "data": to_api(row, base_url=app_config.base_url)}

    @content.post("/team", status_code=201)
    async def create_team_member(
        payload: TeamMemberCreate,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        if not payload.name.strip() or not payload.role.strip():
            raise HTTPException(status_code=400, detail="Name and role are required")
        row = await _team(db).create(payload.to_columns())
        return {
            "success": True,
            "message": "Team member added successfully",
            "data": to_api(row, base_url=app_config.base_url),
        }

    @content.put("/team/{member_id}/active")
    async def set_team_member_active(
        member_id: int,
        payload: ActiveToggle,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        if payload.is_active is None:
            raise HTTPException(status_code=400, detail="isActive is required")
        row = await _team(db).update(member_id, {"is_active": payload.is_active})
        if row is None:
            raise HTTPException(status_code=404, detail="Team member not found")
        return {"success": True, "data": to_api(row, base_url=app_config.base_url)}

    @content.put("/team/{member_id}")
    async def update_team_member(
        member_id: int,
        payload: dict[str, Any] = Body(...),
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        repo = _team(db)
        values = normalize_payload(payload, await repo.columns(), {"image": "image_url"})
        if not values:
            raise HTTPException(status_code=400, detail="No valid fields to update")
        row = await repo.update(member_id, values)
        if row is None:
            raise HTTPException(status_code=404, detail="Team member not found")
        return {
            "success": True,
            "message": "Team member updated successfully",
            "data": to_api(row, base_url=app_config.base_url),
        }

    @content.delete("/team/{member_id}")
    async def delete_team_member(
        member_id: int,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
    ) -> dict:
        row = await _team(db).delete(member_id)
        if row is None:
            raise HTTPException(status_code=404, detail="Team member not found")
        return {"success": True, "message": "Team member deleted successfully"}

    # ── Mission, initiatives, about ───────────────────────────────────────

    @cache.cached_get(content, "/mission", LONG_TTL)
    async def mission(db: Database = Depends(get_db)) -> dict:
        statement = await db.fetch_one(
            "SELECT * FROM architecture_colleagues_mission WHERE is_active = 1 ORDER BY id LIMIT 1"
        )
        values = await ContentRepository(db, "architecture_colleagues_values").list_rows(
            published_only=False, where={"is_active": True}, order_by=ACTIVE_ORDER
        )
        statement = statement or {}
        return {
            "success": True,
            "data": {
                "mission": statement.get("mission_statement") or DEFAULT_MISSION,
                "vision": statement.get("vision_statement") or DEFAULT_VISION,
                "values": [
                    {"title": row["title"], "description": row["description"]} for row in values
                ],
            },
        }

    @cache.cached_get(content, "/initiatives", MEDIUM_TTL)
    async def list_initiatives(
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        rows = await ContentRepository(db, "architecture_colleagues_initiatives").list_rows(
            published_only=False, where={"is_active": True}, order_by=ACTIVE_ORDER
        )
        return {"success": True, "data": [to_api(row, base_url=app_config.base_url) for row in rows]}

    @content.post("/initiatives", status_code=201)
    async def create_initiative(
        payload: InitiativeCreate,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        if not payload.title.strip() or not payload.description.strip():
            raise HTTPException(status_code=400, detail="Title and description are required")
        row = await ContentRepository(db, "architecture_colleagues_initiatives").create(
            payload.to_columns()
        )
        return {
            "success": True,
            "message": "Initiative added successfully",
            "data": to_api(row, base_url=app_config.base_url),
        }

    @cache.cached_get(content, "/about", LONG_TTL)
    async def about() -> dict:
        return {"success": True, "data": ABOUT}

    # ── Contact inbox ─────────────────────────────────────────────────────

    @router.post("/contact", status_code=201)
    async def submit_contact(
        payload: ColleagueContact,
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        fields = {
            "name": payload.name.strip(),
            "email": payload.email.strip(),
            "subject": payload.subject.strip(),
            "message": payload.message.strip(),
        }
        if not all(fields.values()):
            raise HTTPException(status_code=400, detail="All fields are required")
        if not is_valid_email(fields["email"]):
            raise HTTPException(status_code=400, detail="Invalid email address")
        row = await ContentRepository(db, "architecture_colleagues_contact").create(fields)
        logger.info("New colleague lab message #%s from %s", row["id"], fields["email"])
        return {
            "success": True,
            "message": "Thank you for your message! We will get back to you soon.",
            "data": to_api(row, base_url=app_config.base_url),
        }

    @router.get("/contacts")
    async def list_contacts(
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        rows = await ContentRepository(db, "architecture_colleagues_contact").list_rows(
            published_only=False
        )
        return {
            "success": True,
            "count": len(rows),
            "data": [to_api(row, base_url=app_config.base_url) for row in rows],
        }

    @router.put("/contacts/{contact_id}")
    async def update_contact_status(
        contact_id: int,
        payload: StatusUpdate,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        row = await ContentRepository(db, "architecture_colleagues_contact").update(
            contact_id, {"status": payload.status}
        )
        if row is None:
            raise HTTPException(status_code=404, detail="Contact not found")
        return {"success": True, "data": to_api(row, base_url=app_config.base_url)}

    @router.delete("/contacts/{contact_id}")
    async def delete_contact(
        contact_id: int,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
    ) -> dict:
        row = await ContentRepository(db, "architecture_colleagues_contact").delete(contact_id)
        if row is None:
            raise HTTPException(status_code=404, detail="Contact not found")
        return {"success": True, "message": "Contact deleted successfully"}

    router.include_router(content)
    return router
