"""
Contact form, contact details shown on the site, and notification settings.

Submissions are stored first and the admin notification email is sent as a
background task, so a slow or failing SMTP relay never fails the request.
"""

import logging
from html import escape
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Body, Depends, HTTPException

from ..auth import require_admin
from ..cache import LONG_TTL, ResponseCache
from ..config_loader import Config
from ..database import Database
from ..deps import get_config, get_db, get_mailer
from ..mailer import Mailer
from ..models import ContactInfoCreate, ContactSubmission, EmailSettingsUpdate, StatusUpdate
from ..repository import ContentRepository
from ..utils import is_valid_email, normalize_payload, to_api

logger = logging.getLogger(__name__)

CONTACT_INFO_PATTERN = "GET:/api/contact/info*"
INFO_ORDER = "display_order ASC, id ASC"
SUBMISSION_ORDER = (
    "CASE status WHEN 'new' THEN 1 WHEN 'read' THEN 2 WHEN 'replied' THEN 3 ELSE 4 END, "
    "created_at DESC, id DESC"
)


async def send_contact_notification(db: Database, mailer: Mailer, submission: dict) -> None:
    """Email the configured recipient about a new submission; failures are logged only."""
    settings = await db.fetch_one("SELECT * FROM email_settings ORDER BY id LIMIT 1")
    if settings is None or not settings["enabled"]:
        logger.info("Contact notifications disabled; submission #%s not emailed", submission["id"])
        return

    text = (
        f"New contact form submission\n\n"
        f"Name: {submission['name']}\n"
        f"Email: {submission['email']}\n\n"
        f"{submission['message']}\n"
    )
    html = (
        f"<h2>New contact form submission</h2>"
        f"<p><strong>Name:</strong> {escape(submission['name'])}</p>"
        f"<p><strong>Email:</strong> {escape(submission['email'])}</p>"
        f"<p>{escape(submission['message']).replace(chr(10), '<br>')}</p>"
    )
    try:
        await mailer.send(
            to=settings["recipient_email"],
            subject=settings["subject_template"],
            text=text,
            html=html,
        )
    except Exception as exc:  # noqa: BLE001
        logger.error("Failed to send contact notification for #%s: %s", submission["id"], exc)


def build_router(cache: ResponseCache) -> APIRouter:
    router = APIRouter()

    @cache.cached_get(router, "/info", LONG_TTL)
    async def contact_info(
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        rows = await db.fetch_all(
            f"SELECT * FROM contact_info WHERE is_active = 1 ORDER BY {INFO_ORDER}"
        )
        return {"success": True, "data": [to_api(row, base_url=app_config.base_url) for row in rows]}

    @router.post("/submit", status_code=201)
    async def submit_contact(
        payload: ContactSubmission,
        background_tasks: BackgroundTasks,
        db: Database = Depends(get_db),
        mailer: Mailer = Depends(get_mailer),
    ) -> dict:
        name, email, message = payload.name.strip(), payload.email.strip(), payload.message.strip()
        if not name or not email or not message:
            raise HTTPException(status_code=400, detail="Name, email, and message are required")
        if len(name) < 2:
            raise HTTPException(status_code=400, detail="Name must be at least 2 characters")
        if not is_valid_email(email):
            raise HTTPException(status_code=400, detail="Invalid email address")
        if len(message) < 10:
            raise HTTPException(status_code=400, detail="Message must be at least 10 characters")

        row = await ContentRepository(db, "contact_submissions").create(
            {"name": name, "email": email, "message": message}
        )
        logger.info("New contact submission #%s from %s", row["id"], email)
        background_tasks.add_task(send_contact_notification, db, mailer, row)
        return {
            "success": True,
            "message": "Thank you for your message! We will get back to you soon.",
            "data": {"id": row["id"], "createdAt": row["created_at"]},
        }

    # ── Admin: submissions ────────────────────────────────────────────────

    @router.get("/submissions")
    async def list_submissions(
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        rows = await ContentRepository(db, "contact_submissions").list_rows(
            published_only=False, order_by=SUBMISSION_ORDER
        )
        return {"success": True, "data": [to_api(row, base_url=app_config.base_url) for row in rows]}

    @router.get("/submissions/stats")
    async def submission_stats(
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
    ) -> dict:
        rows = await db.fetch_all(
            "SELECT status, COUNT(*) AS count FROM contact_submissions GROUP BY status"
        )
        by_status = {row["status"]: row["count"] for row in rows}
        return {
            "success": True,
            "data": {
                "total": sum(by_status.values()),
                "new": by_status.get("new", 0),
                "read": by_status.get("read", 0),
                "replied": by_status.get("replied", 0),
            },
        }

    @router.put("/submissions/{submission_id}/status")
    async def update_submission_status(
        submission_id: int,
        payload: StatusUpdate,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        if payload.status not in {"new", "read", "replied", "archived"}:
            raise HTTPException(status_code=400, detail="Invalid status")
        row = await ContentRepository(db, "contact_submissions").update(
            submission_id, payload.model_dump(exclude_none=True)
        )
        if row is None:
            raise HTTPException(status_code=404, detail="Submission not found")
        return {"success": True, "data": to_api(row, base_url=app_config.base_url)}

    @router.delete("/submissions/{submission_id}")
    async def delete_submission(
        submission_id: int,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
    ) -> dict:
        row = await ContentRepository(db, "contact_submissions").delete(submission_id)
        if row is None:
            raise HTTPException(status_code=404, detail="Submission not found")
        return {"success": True, "message": "Submission deleted successfully"}

    # ── Admin: contact info ───────────────────────────────────────────────

    @router.get("/admin/info")
    async def list_all_contact_info(
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        rows = await db.fetch_all(f"SELECT * FROM contact_info ORDER BY {INFO_ORDER}")
        return {"success": True, "data": [to_api(row, base_url=app_config.base_url) for row in rows]}

    @router.post("/info", status_code=201)
    async def create_contact_info(
        payload: ContactInfoCreate,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        row = await ContentRepository(db, "contact_info").create(payload.to_columns())
        cache.invalidate(CONTACT_INFO_PATTERN)
        return {"success": True, "data": to_api(row, base_url=app_config.base_url)}

    @router.put("/info/{info_id}")
    async def update_contact_info(
        info_id: int,
        payload: dict[str, Any] = Body(...),
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        repo = ContentRepository(db, "contact_info")
        values = normalize_payload(payload, await repo.columns())
        if not values:
            raise HTTPException(status_code=400, detail="No valid fields to update")
        row = await repo.update(info_id, values)
        if row is None:
            raise HTTPException(status_code=404, detail="Contact info not found")
        cache.invalidate(CONTACT_INFO_PATTERN)
        return {"success": True, "data": to_api(row, base_url=app_config.base_url)}

    @router.delete("/info/{info_id}")
    async def delete_contact_info(
        info_id: int,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
    ) -> dict:
        row = await ContentRepository(db, "contact_info").delete(info_id)
        if row is None:
            raise HTTPException(status_code=404, detail="Contact info not found")
        cache.invalidate(CONTACT_INFO_PATTERN)
        return {"success": True, "message": "Contact info deleted successfully"}

    # ── Admin: notification settings ──────────────────────────────────────

    @router.get("/email-settings")
    async def get_email_settings(
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        row = await db.fetch_one("SELECT * FROM email_settings ORDER BY id LIMIT 1")
        if row is None:
            raise HTTPException(status_code=404, detail="Email settings not found")
        return {"success": True, "data": to_api(row, base_url=app_config.base_url)}

    @router.put("/email-settings/{settings_id}")
    async def update_email_settings(
        settings_id: int,
        payload: EmailSettingsUpdate,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        values = payload.model_dump(exclude_none=True)
        if "recipient_email" in values and not is_valid_email(values["recipient_email"]):
            raise HTTPException(status_code=400, detail="Invalid recipient email address")
        row = await ContentRepository(db, "email_settings").update(settings_id, values)
        if row is None:
            raise HTTPException(status_code=404, detail="Email settings not found")
        return {"success": True, "data": to_api(row, base_url=app_config.base_url)}

    return router
