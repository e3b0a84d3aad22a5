"""Validation and storage of uploaded logo/image files."""

import logging
import uuid
from dataclasses import dataclass
from pathlib import PurePath
from typing import Optional

from ..exceptions import UploadRejected
from .page_storage import PageStorage, StoredObject

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = frozenset({".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp"})
ALLOWED_MIME_TYPES = frozenset(
    {"image/png", "image/jpeg", "image/gif", "image/svg+xml", "image/webp"}
)


@dataclass
class UploadResult:
    filename: str
    url: str
    size: int


class UploadHandler:
    """Checks size and type of an upload, then writes it to page storage."""

    def __init__(self, storage: PageStorage, max_bytes: int = 5 * 1024 * 1024) -> None:
        self._storage = storage
        self._max_bytes = max_bytes

    def validate(self, filename: Optional[str], content_type: Optional[str], size: int) -> str:
        """
        Return the normalized file extension for an acceptable upload.

        Raises:
            UploadRejected: Missing file, disallowed type or too large
        """
        if not filename:
            raise UploadRejected("No se recibió ningún archivo")

        extension = PurePath(filename).suffix.lower()
        if extension not in ALLOWED_EXTENSIONS or (content_type or "").lower() not in ALLOWED_MIME_TYPES:
            raise UploadRejected("Solo se permiten imágenes (png, jpg, gif, svg, webp)")

        if size > self._max_bytes:
            raise UploadRejected(
                f"El archivo supera el límite de {self._max_bytes // (1024 * 1024)}MB"
            )
        if size == 0:
            raise UploadRejected("El archivo está vacío")
        return ".jpg" if extension == ".jpeg" else extension

    async def store(
        self, filename: Optional[str], content_type: Optional[str], content: bytes, prefix: str = "image"
    ) -> UploadResult:
        extension = self.validate(filename, content_type, len(content))
        stored_name = f"{prefix}-{uuid.uuid4().hex}{extension}"
        stored: StoredObject = await self._storage.save_upload(stored_name, content)
        logger.info(f"Stored upload {filename!r} as {stored_name} -> {stored.url}")
        return UploadResult(filename=stored_name, url=stored.url, size=len(content))
