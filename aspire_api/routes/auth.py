"""Admin login, token verification and password change."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from ..auth import TokenService, get_tokens
from ..database import Database
from ..deps import get_db
from ..models import ChangePasswordRequest, LoginRequest, VerifyRequest
from ..passwords import hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login")
async def login(
    payload: LoginRequest,
    db: Database = Depends(get_db),
    tokens: TokenService = Depends(get_tokens),
) -> dict:
    """
    Exchange admin credentials for a bearer token.

    Raises:
        HTTPException: 400 when a field is missing, 401 on bad credentials
    """
    if not payload.username or not payload.password:
        raise HTTPException(status_code=400, detail="Username and password are required")

    admin = await db.fetch_one("SELECT * FROM admins WHERE username = ?", (payload.username,))
    if admin is None or not verify_password(payload.password, admin["password"]):
        logger.warning("Failed login attempt for %s", payload.username)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    return {
        "success": True,
        "token": tokens.issue(admin["id"], admin["username"]),
        "user": {"id": admin["id"], "username": admin["username"]},
    }


@router.post("/verify")
async def verify(payload: VerifyRequest, tokens: TokenService = Depends(get_tokens)) -> dict:
    if not payload.token:
        raise HTTPException(status_code=400, detail="Token is required")
    decoded = tokens.decode(payload.token)
    if decoded is None:
        return {"valid": False, "error": "Invalid or expired token"}
    return {"valid": True, "user": decoded}


@router.post("/change-password")
async def change_password(
    payload: ChangePasswordRequest,
    db: Database = Depends(get_db),
    tokens: TokenService = Depends(get_tokens),
) -> dict:
    if not payload.current_password or not payload.new_password or not payload.token:
        raise HTTPException(status_code=400, detail="All fields are required")

    decoded = tokens.decode(payload.token)
    if decoded is None:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    admin = await db.fetch_one("SELECT * FROM admins WHERE id = ?", (int(decoded["sub"]),))
    if admin is None:
        raise HTTPException(status_code=401, detail="Invalid token")
    if not verify_password(payload.current_password, admin["password"]):
        raise HTTPException(status_code=401, detail="Current password is incorrect")

    await db.execute(
        "UPDATE admins SET password = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
        (hash_password(payload.new_password), admin["id"]),
    )
    logger.info("Password changed for admin %s", admin["username"])
    return {"success": True, "message": "Password updated successfully"}
