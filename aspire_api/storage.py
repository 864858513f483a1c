"""
Upload storage adapters.

``LocalStorage`` writes files under the configured upload directory (served
at ``/uploads``); ``CloudinaryStorage`` pushes them to the Cloudinary media
CDN with a signed upload request.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path

import aiohttp
from fastapi import HTTPException

from .config_loader import Config
from .service_base import BaseService

UPLOAD_TIMEOUT = 60
CLOUDINARY_API = "https://api.cloudinary.com/v1_1"


@dataclass
class StoredFile:
    url: str
    filename: str
    mimetype: str
    size: int
    public_id: str | None = None


def clean_filename(filename: str) -> str:
    """Lower-case the name and replace anything outside ``[a-z0-9.-_]`` with ``-``."""
    return re.sub(r"[^a-zA-Z0-9.\-_]", "-", filename or "upload").lower()


class LocalStorage(BaseService):
    """Stores uploads on local disk with a millisecond timestamp prefix."""

    def __init__(
        self,
        root: Path,
        public_prefix: str = "/uploads",
        logger: logging.Logger | None = None,
    ):
        super().__init__(logger=logger)
        self.root = Path(root)
        self.public_prefix = public_prefix.rstrip("/")

    async def save(self, data: bytes, filename: str, mimetype: str) -> StoredFile:
        name = f"{int(time.time() * 1000)}-{clean_filename(filename)}"
        target = self.root / name
        await asyncio.to_thread(self._write, target, data)
        self.logger.info("Stored upload %s (%s bytes)", name, len(data))
        return StoredFile(
            url=f"{self.public_prefix}/{name}",
            filename=name,
            mimetype=mimetype,
            size=len(data),
        )

    @staticmethod
    def _write(target: Path, data: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)


class CloudinaryStorage(BaseService):
    """Uploads files to Cloudinary via its signed REST upload endpoint."""

    def __init__(
        self,
        *,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        folder: str = "aspire-arch",
        logger: logging.Logger | None = None,
    ):
        super().__init__(logger=logger)
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.folder = folder

    def sign(self, params: dict[str, str]) -> str:
        """Cloudinary signature: sha1 of sorted ``k=v`` pairs joined by ``&`` plus the secret."""
        payload = "&".join(f"{key}={params[key]}" for key in sorted(params))
        return hashlib.sha1(f"{payload}{self.api_secret}".encode()).hexdigest()

    async def save(self, data: bytes, filename: str, mimetype: str) -> StoredFile:
        params = {"folder": self.folder, "timestamp": str(int(time.time()))}
        form = aiohttp.FormData()
        form.add_field("file", data, filename=clean_filename(filename), content_type=mimetype)
        for key, value in params.items():
            form.add_field(key, value)
        form.add_field("api_key", self.api_key)
        form.add_field("signature", self.sign(params))

        url = f"{CLOUDINARY_API}/{self.cloud_name}/auto/upload"
        async with aiohttp.ClientSession() as session:
            try:
                async with session.post(
                    url, data=form, timeout=aiohttp.ClientTimeout(total=UPLOAD_TIMEOUT)
                ) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        self.logger.error(
                            "Cloudinary returned %s: %s", response.status, error_text[:500]
                        )
                        raise HTTPException(status_code=502, detail="Media upload failed")
                    result = await response.json()
            except TimeoutError:
                raise HTTPException(status_code=504, detail="Media upload timeout")
            except aiohttp.ClientError as exc:
                self.logger.error("Cloudinary connection error: %s", exc)
                raise HTTPException(status_code=502, detail="Cannot connect to media host")

        self.logger.info("Cloudinary upload successful: %s", result.get("secure_url"))
        return StoredFile(
            url=result["secure_url"],
            filename=result.get("original_filename", filename),
            mimetype=mimetype,
            size=int(result.get("bytes", len(data))),
            public_id=result.get("public_id"),
        )


def build_storage(app_config: Config) -> LocalStorage | CloudinaryStorage:
    """Use Cloudinary when credentials are configured, local disk otherwise."""
    if app_config.has_cloudinary_credentials:
        return CloudinaryStorage(
            cloud_name=app_config.cloudinary_cloud_name,
            api_key=app_config.cloudinary_api_key,
            api_secret=app_config.cloudinary_api_secret,
            folder=app_config.cloudinary_folder,
        )
    return LocalStorage(app_config.upload_dir)
