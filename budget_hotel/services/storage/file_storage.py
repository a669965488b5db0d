"""
Local file storage for uploaded images.

- Extension and size validation against settings.
- Saving raw bytes under ``UPLOAD_DIR/<folder>/<uuid>.<ext>``.
- Safe deletion of files previously returned by ``save``.
"""

import os
import uuid
from pathlib import Path
from typing import Optional

from budget_hotel.config.settings import settings
from budget_hotel.core.exceptions import FileStorageError, ValidationError
from budget_hotel.core.logging import get_logger

logger = get_logger(__name__)

PUBLIC_PREFIX = "/uploads"

# Filesystem permissions
DIR_PERMISSIONS = 0o755
FILE_PERMISSIONS = 0o644


class FileStorage:
    """Stores uploads on local disk and serves them under ``/uploads``."""

    def __init__(
        self,
        root: Optional[str] = None,
        max_size: Optional[int] = None,
        allowed_extensions: Optional[set] = None,
    ):
        self.root = Path(root or settings.UPLOAD_DIR)
        self.max_size = max_size or settings.MAX_UPLOAD_SIZE
        self.allowed_extensions = allowed_extensions or settings.ALLOWED_EXTENSIONS

    def _extension(self, filename: str) -> str:
        ext = os.path.splitext(os.path.basename(filename or ""))[1].lstrip(".").lower()
        if not ext or ext not in self.allowed_extensions:
            allowed = ", ".join(sorted(self.allowed_extensions))
            raise ValidationError(
                "Unsupported file type",
                {"file": [f"allowed extensions: {allowed}"]},
            )
        return ext

    def validate(self, filename: str, data: bytes) -> str:
        ext = self._extension(filename)
        if not data:
            raise ValidationError("Uploaded file is empty", {"file": ["file is empty"]})
        if len(data) > self.max_size:
            raise ValidationError(
                "Uploaded file is too large",
                {"file": [f"maximum size is {self.max_size} bytes"]},
            )
        return ext

    def save(self, folder: str, filename: str, data: bytes) -> str:
        """
        Persist an upload.

        Returns:
            Public URL path such as ``/uploads/rooms/<uuid>.jpg``
        """
        ext = self.validate(filename, data)
        name = f"{uuid.uuid4().hex}.{ext}"
        target_dir = self.root / folder
        try:
            target_dir.mkdir(parents=True, exist_ok=True, mode=DIR_PERMISSIONS)
            target = target_dir / name
            target.write_bytes(data)
            os.chmod(target, FILE_PERMISSIONS)
        except OSError as e:
            logger.error(f"Failed to store upload in {folder}: {e}")
            raise FileStorageError(f"Could not store file: {e}") from e

        logger.info(f"Stored upload {folder}/{name} ({len(data)} bytes)")
        return f"{PUBLIC_PREFIX}/{folder}/{name}"

    def _resolve(self, url: str) -> Optional[Path]:
        """Map a public URL back to a path inside the upload root"""
        if not url or not url.startswith(f"{PUBLIC_PREFIX}/"):
            return None
        relative = url[len(PUBLIC_PREFIX) + 1:]
        path = (self.root / relative).resolve()
        root = self.root.resolve()
        if root not in path.parents:
            return None
        return path

    def delete(self, url: Optional[str]) -> bool:
        """Remove a stored file; unknown or foreign URLs are ignored"""
        path = self._resolve(url) if url else None
        if path is None or not path.exists():
            return False
        try:
            path.unlink()
        except OSError as e:
            logger.warning(f"Failed to delete upload {url}: {e}")
            return False
        logger.info(f"Deleted upload {url}")
        return True

    def replace(self, old_url: Optional[str], folder: str, filename: str, data: bytes) -> str:
        new_url = self.save(folder, filename, data)
        self.delete(old_url)
        return new_url


def get_file_storage() -> FileStorage:
    return FileStorage()
