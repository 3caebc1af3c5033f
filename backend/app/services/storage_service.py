"""Image storage abstraction.

Supports two backends selected via ``settings.STORAGE_BACKEND``:

1. **filesystem** (default): Stores images under ``settings.STORAGE_DIRECTORY``.
2. **minio**: Uses the MinIO S3-compatible object storage.

Every image is saved under a generated name (``<uuid hex>.<ext>``) that
is persisted on the measure row.  Retrieval resolves the name with the
active backend.  ``save`` only returns once the bytes are durable: the
filesystem backend writes to a temporary file, fsyncs it and renames it
into place, so a measure can never reference a half-written image.
"""

from __future__ import annotations

import logging
import os
import re
import uuid
from io import BytesIO
from pathlib import Path
from typing import Any, Optional

from minio import Minio
from minio.error import S3Error

from app.core.config import Settings
from app.core.errors import ImageNotFoundError, ImageStorageError

logger = logging.getLogger(__name__)

_NAME_RE = re.compile(r"^[0-9a-f]{32}\.[a-z0-9]{1,5}$")

CONTENT_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "webp": "image/webp",
    "heic": "image/heic",
    "heif": "image/heif",
}


def content_type_for(name: str) -> str:
    """Return the mime type for a stored image name."""
    extension = name.rsplit(".", 1)[-1].lower()
    return CONTENT_TYPES.get(extension, "application/octet-stream")


class ImageStore:
    """Unified image store (filesystem or MinIO)."""

    def __init__(self, settings: Settings, client: Optional[Any] = None) -> None:
        self.backend = (settings.STORAGE_BACKEND or "filesystem").lower()
        self.public_base_url = (settings.PUBLIC_BASE_URL or "").rstrip("/")
        if self.backend == "minio":
            self._client = client or Minio(
                settings.MINIO_ENDPOINT,
                access_key=settings.MINIO_ACCESS_KEY,
                secret_key=settings.MINIO_SECRET_KEY,
                secure=bool(settings.MINIO_USE_SSL),
            )
            self.bucket = settings.MINIO_BUCKET_NAME
        elif self.backend == "filesystem":
            self.base_dir = settings.storage_path()
        else:
            raise ValueError(f"Unknown STORAGE_BACKEND: {settings.STORAGE_BACKEND!r}")

    def prepare(self) -> None:
        """Create the bucket or directory; run once at application startup."""
        if self.backend == "minio":
            # Ensure bucket exists (idempotent)
            try:
                if not self._client.bucket_exists(self.bucket):
                    self._client.make_bucket(self.bucket)
            except Exception as e:  # pragma: no cover - startup path
                logger.warning("[storage] MinIO bucket ensure failed: %s", e)
            return
        self.base_dir.mkdir(parents=True, exist_ok=True)
        logger.info("[storage] Filesystem base_dir: %s", self.base_dir)

    @staticmethod
    def generate_name(extension: str) -> str:
        return f"{uuid.uuid4().hex}.{extension.lower().lstrip('.')}"

    def image_path(self, name: str) -> str:
        """Retrieval path clients use to fetch ``name`` through ``GET /images/{name}``."""
        return f"{self.public_base_url}/images/{name}"

    def save(self, data: bytes, extension: str) -> str:
        """Persist ``data`` durably and return its generated name."""
        if not data:
            raise ImageStorageError("refusing to store an empty image")
        name = self.generate_name(extension)

        if self.backend == "minio":
            try:
                self._client.put_object(
                    self.bucket,
                    name,
                    BytesIO(data),
                    len(data),
                    content_type=content_type_for(name),
                )
            except Exception as e:
                raise ImageStorageError(f"MinIO upload failed for {name}: {e}") from e
            logger.info("[storage] MinIO object put: %s size=%d", name, len(data))
            return name

        final_path = self.base_dir / name
        tmp_path = self.base_dir / f".{name}.tmp"
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "wb") as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, final_path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise ImageStorageError(f"Filesystem write failed for {final_path}: {e}") from e
        logger.info("[storage] FS saved: %s bytes=%d", final_path, len(data))
        return name

    def load(self, name: str) -> bytes:
        """Load raw bytes for a stored image by name."""
        if not _NAME_RE.match(name or ""):
            raise ImageNotFoundError()

        if self.backend == "minio":
            try:
                resp = self._client.get_object(self.bucket, name)
            except S3Error as e:
                if e.code in ("NoSuchKey", "NoSuchObject"):
                    raise ImageNotFoundError() from e
                raise ImageStorageError(f"MinIO download failed for {name}: {e}") from e
            except Exception as e:
                raise ImageStorageError(f"MinIO download failed for {name}: {e}") from e
            try:
                return resp.read()
            finally:
                resp.close()
                resp.release_conn()

        try:
            return (self.base_dir / name).read_bytes()
        except FileNotFoundError as e:
            raise ImageNotFoundError() from e
        except OSError as e:
            raise ImageStorageError(f"Filesystem read failed for {name}: {e}") from e

    def probe(self) -> None:
        """Raise if the backend is not usable (health checks)."""
        if self.backend == "minio":
            self._client.bucket_exists(self.bucket)
            return
        if not (self.base_dir.is_dir() and os.access(self.base_dir, os.W_OK)):
            raise ImageStorageError(f"storage directory not writable: {self.base_dir}")
