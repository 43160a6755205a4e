"""
Local image storage for event, profile and review pictures.

Files are written under ``UPLOAD_DIR/<folder>/`` and served by the application
under ``UPLOAD_URL_PREFIX``. The stored value is the public path.
"""

import logging
import random
import time
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from app.utils.validation import IMAGE_KINDS, validate_image_upload
from core.config import Settings
from core.errors import ServerError

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


class ImageStore:
    def __init__(self, upload_dir: str, url_prefix: str = "/uploads"):
        self.root = Path(upload_dir)
        self.url_prefix = url_prefix.rstrip("/")

    @classmethod
    def from_settings(cls, settings: Settings) -> "ImageStore":
        return cls(settings.UPLOAD_DIR, settings.UPLOAD_URL_PREFIX)

    def save(self, file: Optional[UploadFile], kind: str) -> Optional[str]:
        """
        Validate and store an uploaded image.

        Args:
            file: Uploaded file, or None when the form had no image
            kind: One of IMAGE_KINDS ("event", "profile", "review")

        Returns:
            Public path of the stored image, or None when no file was sent

        Raises:
            ValidationError: Wrong type, too large or not an image
            ServerError: Writing to disk failed
        """
        if file is None or not file.filename:
            return None

        data = validate_image_upload(file, kind)
        folder = IMAGE_KINDS[kind].folder
        filename = self.make_filename(folder, file.content_type)

        target_dir = self.root / folder
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            (target_dir / filename).write_bytes(data)
        except OSError as e:
            logger.error(f"Failed to store image {filename}: {e}")
            raise ServerError("Failed to store uploaded image") from e

        logger.info(f"Stored {kind} image {folder}/{filename} ({len(data)} bytes)")
        return f"{self.url_prefix}/{folder}/{filename}"

    def discard(self, public_path: Optional[str]) -> None:
        """Remove an image stored by ``save`` for a request that was then rejected."""
        if not public_path or not public_path.startswith(f"{self.url_prefix}/"):
            return

        target = self.root / public_path[len(self.url_prefix) + 1:]
        try:
            target.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to remove rejected image {target}: {e}")
            return
        logger.info(f"Removed rejected image {public_path}")

    @staticmethod
    def make_filename(folder: str, content_type: str) -> str:
        suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
        return f"{folder}-{suffix}{_EXTENSIONS.get(content_type, '')}"
