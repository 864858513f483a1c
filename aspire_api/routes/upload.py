"""
File upload route.

Accepts a single multipart file, checks its type and size and hands it to
the configured storage adapter (local disk or the Cloudinary media CDN).
"""

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from ..auth import require_admin
from ..config_loader import Config
from ..deps import get_config, get_storage
from ..storage import StoredFile

logger = logging.getLogger(__name__)

UPLOAD_CHUNK_BYTES = 1024 * 1024

ALLOWED_TYPES = frozenset(
    {
        # Images
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
        "image/webp",
        "image/svg+xml",
        # Videos
        "video/mp4",
        "video/webm",
        "video/ogg",
        "video/quicktime",
        # Documents
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.ms-powerpoint",
        "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        "text/plain",
    }
)


async def store_upload(
    upload: UploadFile,
    storage,
    max_bytes: int,
    allowed: frozenset[str] = ALLOWED_TYPES,
) -> StoredFile:
    """
    Validate and persist one uploaded file.

    Raises:
        HTTPException: 400 for unsupported types, 413 for oversized files
    """
    mimetype = upload.content_type or "application/octet-stream"
    if mimetype not in allowed:
        raise HTTPException(
            status_code=400,
            detail=f"File type '{mimetype}' is not supported. "
            "Please upload images, videos, or documents.",
        )
    chunks: list[bytes] = []
    received = 0
    # Never read more than one byte past the limit.
    while chunk := await upload.read(min(UPLOAD_CHUNK_BYTES, max_bytes + 1 - received)):
        received += len(chunk)
        if received > max_bytes:
            raise HTTPException(status_code=413, detail="File is too large")
        chunks.append(chunk)
    return await storage.save(b"".join(chunks), upload.filename or "upload", mimetype)


router = APIRouter()


@router.post("", status_code=201)
async def upload_file(
    file: UploadFile | None = File(None),
    type: str = Form("general"),
    _admin: dict = Depends(require_admin),
    storage=Depends(get_storage),
    app_config: Config = Depends(get_config),
) -> dict:
    """Store a single uploaded file and return its public URL."""
    if file is None:
        raise HTTPException(
            status_code=400, detail="No file uploaded. Please select a file to upload."
        )
    stored = await store_upload(file, storage, app_config.max_upload_bytes)
    logger.info("Upload stored: %s (%s, type=%s)", stored.filename, stored.mimetype, type)
    return {
        "success": True,
        "url": stored.url,
        "filename": stored.filename,
        "mimetype": stored.mimetype,
        "size": stored.size,
        "publicId": stored.public_id,
    }
