"""Admin endpoints exposing response cache statistics and manual invalidation."""

from fastapi import APIRouter, Depends, HTTPException

from ..auth import require_admin
from ..cache import InvalidPatternError, ResponseCache
from ..models import InvalidateRequest


def build_router(cache: ResponseCache) -> APIRouter:
    router = APIRouter(dependencies=[Depends(require_admin)])

    @router.get("/stats")
    async def cache_stats() -> dict:
        return {"success": True, "data": cache.stats()}

    @router.post("/flush")
    async def flush_cache() -> dict:
        return {"success": True, "cleared": cache.flush()}

    @router.post("/invalidate")
    async def invalidate_cache(payload: InvalidateRequest) -> dict:
        try:
            cleared = cache.invalidate(payload.pattern)
        except InvalidPatternError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"success": True, "pattern": payload.pattern, "cleared": cleared}

    return router
