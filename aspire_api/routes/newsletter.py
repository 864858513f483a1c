"""Newsletter sign-up and the admin subscriber list."""

import logging

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException

from ..auth import require_admin
from ..database import Database
from ..deps import get_db
from ..models import NewsletterSubscription
from ..utils import is_valid_email

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/subscribe", status_code=201)
async def subscribe(payload: NewsletterSubscription, db: Database = Depends(get_db)) -> dict:
    email = payload.email.strip().lower()
    if not is_valid_email(email):
        raise HTTPException(status_code=400, detail="Please provide a valid email address")
    try:
        await db.execute("INSERT INTO newsletter_subscribers (email) VALUES (?)", (email,))
    except aiosqlite.IntegrityError as exc:
        raise HTTPException(status_code=409, detail="This email is already subscribed") from exc
    logger.info("Newsletter subscription: %s", email)
    return {"success": True, "message": "Successfully subscribed to the newsletter!"}


@router.get("/subscribers")
async def list_subscribers(
    _admin: dict = Depends(require_admin),
    db: Database = Depends(get_db),
) -> dict:
    rows = await db.fetch_all(
        "SELECT id, email, subscribed_at FROM newsletter_subscribers ORDER BY subscribed_at DESC"
    )
    return {
        "success": True,
        "count": len(rows),
        "data": [
            {"id": row["id"], "email": row["email"], "subscribedAt": row["subscribed_at"]}
            for row in rows
        ],
    }


@router.delete("/unsubscribe/{email}")
async def unsubscribe(email: str, db: Database = Depends(get_db)) -> dict:
    cursor = await db.execute(
        "DELETE FROM newsletter_subscribers WHERE email = ?", (email.strip().lower(),)
    )
    if cursor.rowcount == 0:
        raise HTTPException(status_code=404, detail="Email not found in subscribers list")
    return {"success": True, "message": "Successfully unsubscribed from the newsletter"}
