from __future__ import annotations

import asyncio
from functools import lru_cache
import logging
from pathlib import Path, PurePosixPath
import re
from typing import Protocol
from uuid import uuid4

import httpx

from localboard_api.core.config import get_settings

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class StorageError(Exception):
    """Raised when an uploaded file cannot be stored."""


class BlobStorage(Protocol):
    async def put(self, *, path: str, content: bytes, content_type: str | None) -> str: ...


def blob_path(kind: str, filename: str | None) -> str:
    name = PurePosixPath(filename or "upload").name
    safe = _UNSAFE_CHARS.sub("-", name).strip("-.") or "upload"
    return f"{kind}/{uuid4().hex}-{safe}"


class LocalBlobStorage:
    """Writes uploads under a directory served by the API itself."""

    def __init__(self, root: Path, url_prefix: str) -> None:
        self.root = root
        self.url_prefix = "/" + url_prefix.strip("/")

    async def put(self, *, path: str, content: bytes, content_type: str | None) -> str:
        target = self.root / path
        try:
            await asyncio.to_thread(self._write, target, content)
        except OSError as exc:
            raise StorageError(f"failed to write upload: {exc}") from exc
        logger.info("stored upload backend=local path=%s bytes=%s", path, len(content))
        return f"{self.url_prefix}/{path}"

    @staticmethod
    def _write(target: Path, content: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)


class HostedBlobStorage:
    def __init__(
        self,
        *,
        api_url: str,
        token: str,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.token = token
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def put(self, *, path: str, content: bytes, content_type: str | None) -> str:
        headers = {
            "Authorization": f"Bearer {self.token}",
            "x-add-random-suffix": "0",
        }
        if content_type:
            headers["x-content-type"] = content_type

        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = await client.put(f"{self.api_url}/{path}", content=content, headers=headers)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPError as exc:
            raise StorageError(f"blob upload failed: {exc}") from exc
        except ValueError as exc:
            raise StorageError("blob upload returned invalid JSON") from exc

        url = payload.get("url") if isinstance(payload, dict) else None
        if not url:
            raise StorageError("blob upload response is missing url")
        logger.info("stored upload backend=hosted path=%s bytes=%s", path, len(content))
        return url


@lru_cache
def get_storage() -> BlobStorage:
    settings = get_settings()
    if settings.resolved_storage_backend == "hosted":
        if not settings.blob_read_write_token:
            raise StorageError("LB_BLOB_READ_WRITE_TOKEN is required for hosted storage")
        return HostedBlobStorage(
            api_url=settings.blob_api_url,
            token=settings.blob_read_write_token,
            timeout_seconds=settings.blob_timeout_seconds,
        )
    return LocalBlobStorage(Path(settings.upload_dir), settings.upload_url_prefix)
