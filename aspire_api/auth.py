"""
JWT issuing/verification and admin authentication dependencies.

Tokens are HS256 JWTs whose ``sub`` claim is the admin id. The
``require_admin`` dependency guards every write route and admin listing.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from fastapi import HTTPException, Request
from jwt.exceptions import PyJWTError

from .deps import get_db

logger = logging.getLogger(__name__)

TOKEN_ALGORITHM = "HS256"


class TokenService:
    """Creates and validates admin access tokens."""

    def __init__(self, secret: str, expire_hours: int = 8):
        self._secret = secret
        self._expire = timedelta(hours=expire_hours)

    def issue(self, admin_id: int, username: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(admin_id),
            "username": username,
            "role": "admin",
            "iat": now,
            "exp": now + self._expire,
        }
        return jwt.encode(payload, self._secret, algorithm=TOKEN_ALGORITHM)

    def decode(self, token: str) -> dict[str, Any] | None:
        """Decode a token, returning None when it is invalid or expired."""
        try:
            return jwt.decode(token, self._secret, algorithms=[TOKEN_ALGORITHM])
        except PyJWTError as exc:
            logger.debug("Rejected token: %s", exc)
            return None


def get_tokens(request: Request) -> TokenService:
    return request.app.state.tokens


async def _admin_for_payload(request: Request, payload: dict[str, Any]) -> dict | None:
    try:
        admin_id = int(payload.get("sub", ""))
    except (TypeError, ValueError):
        return None
    return await get_db(request).fetch_one(
        "SELECT id, username FROM admins WHERE id = ?", (admin_id,)
    )


async def require_admin(request: Request) -> dict:
    """Resolve the authenticated admin or fail with 401."""
    header = request.headers.get("authorization")
    if not header:
        raise HTTPException(status_code=401, detail="Authentication required")

    parts = header.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer":
        raise HTTPException(status_code=401, detail="Invalid authorization format")

    payload = get_tokens(request).decode(parts[1])
    if payload is None:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    admin = await _admin_for_payload(request, payload)
    if admin is None:
        raise HTTPException(status_code=401, detail="Invalid admin user")
    return admin


async def optional_admin(request: Request) -> dict | None:
    """Resolve the admin when a valid bearer token is present, otherwise None."""
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme != "Bearer" or not token:
        return None
    payload = get_tokens(request).decode(token)
    if payload is None:
        return None
    return await _admin_for_payload(request, payload)
