"""Portfolio items: public listing with pagination plus admin CRUD with file attachments."""

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile

from ..auth import require_admin
from ..cache import MEDIUM_TTL, ResponseCache
from ..config_loader import Config
from ..database import Database
from ..deps import get_config, get_db, get_storage
from ..repository import ContentRepository
from ..utils import paginate, to_api
from .upload import store_upload

ITEM_IMAGE_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"})
ITEM_FILE_TYPES = ITEM_IMAGE_TYPES | {"application/pdf"}
MAX_ITEM_FILES = 5
ITEM_UPLOAD_BYTES = 5 * 1024 * 1024


async def _store_attachments(storage, files: list[UploadFile] | None) -> list[dict] | None:
    if not files:
        return None
    if len(files) > MAX_ITEM_FILES:
        raise HTTPException(status_code=400, detail=f"At most {MAX_ITEM_FILES} files are allowed")
    stored = []
    for upload in files:
        result = await store_upload(upload, storage, ITEM_UPLOAD_BYTES, ITEM_FILE_TYPES)
        stored.append(
            {
                "path": result.url,
                "name": upload.filename,
                "type": result.mimetype,
                "size": result.size,
            }
        )
    return stored


def build_router(cache: ResponseCache) -> APIRouter:
    router = APIRouter(route_class=cache.invalidate_on_write("GET:/api/items*", "GET:/api/home*"))

    @cache.cached_get(router, "", MEDIUM_TTL)
    async def list_items(
        type: str | None = None,
        limit: int | None = Query(None, ge=1),
        page: int | None = Query(None, ge=1),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> list[dict]:
        """Published items, newest first, optionally filtered by type and paginated."""
        limit, offset = paginate(limit, page)
        rows = await ContentRepository(db, "items").list_rows(
            where={"type": type} if type else None,
            limit=limit,
            offset=offset,
        )
        return [to_api(row, base_url=app_config.base_url) for row in rows]

    @router.get("/admin/all")
    async def list_all_items(
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> list[dict]:
        rows = await ContentRepository(db, "items").list_rows(published_only=False)
        return [to_api(row, base_url=app_config.base_url) for row in rows]

    @cache.cached_get(router, "/{item_id}", MEDIUM_TTL)
    async def get_item(
        item_id: int,
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        row = await ContentRepository(db, "items").get(item_id, published_only=True)
        if row is None:
            raise HTTPException(status_code=404, detail="Item not found")
        return to_api(row, base_url=app_config.base_url)

    @router.post("", status_code=201)
    async def create_item(
        title: str = Form(...),
        type: str = Form(...),
        content: str = Form(""),
        status: str = Form("published"),
        image: UploadFile | None = File(None),
        files: list[UploadFile] | None = File(None),
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        storage=Depends(get_storage),
        app_config: Config = Depends(get_config),
    ) -> dict:
        image_url = None
        if image is not None:
            image_url = (await store_upload(image, storage, ITEM_UPLOAD_BYTES, ITEM_IMAGE_TYPES)).url
        attachments = await _store_attachments(storage, files)
        row = await ContentRepository(db, "items").create(
            {
                "title": title,
                "type": type,
                "content": content,
                "image": image_url,
                "files": attachments or [],
                "status": status,
            }
        )
        return to_api(row, base_url=app_config.base_url)

    @router.put("/{item_id}")
    async def update_item(
        item_id: int,
        title: str | None = Form(None),
        type: str | None = Form(None),
        content: str | None = Form(None),
        status: str | None = Form(None),
        image: UploadFile | None = File(None),
        files: list[UploadFile] | None = File(None),
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        storage=Depends(get_storage),
        app_config: Config = Depends(get_config),
    ) -> dict:
        """Partial update; existing image and files are kept unless new ones are uploaded."""
        repo = ContentRepository(db, "items")
        if await repo.get(item_id) is None:
            raise HTTPException(status_code=404, detail="Item not found")

        values = {
            key: value
            for key, value in {
                "title": title or None,
                "type": type or None,
                "content": content,
                "status": status or None,
            }.items()
            if value is not None
        }
        if image is not None:
            values["image"] = (
                await store_upload(image, storage, ITEM_UPLOAD_BYTES, ITEM_IMAGE_TYPES)
            ).url
        attachments = await _store_attachments(storage, files)
        if attachments is not None:
            values["files"] = attachments

        row = await repo.update(item_id, values)
        return to_api(row, base_url=app_config.base_url)

    @router.delete("/{item_id}")
    async def delete_item(
        item_id: int,
        _admin: dict = Depends(require_admin),
        db: Database = Depends(get_db),
        app_config: Config = Depends(get_config),
    ) -> dict:
        row = await ContentRepository(db, "items").delete(item_id)
        if row is None:
            raise HTTPException(status_code=404, detail="Item not found")
        return {
            "success": True,
            "message": "Item deleted successfully",
            "deleted": to_api(row, base_url=app_config.base_url),
        }

    return router
