"""Avatar file storage on the local filesystem.

Files are written below ``settings.upload_dir`` and served from
``{backend_url}/uploads/``.
"""

import asyncio
import secrets
from pathlib import Path
from typing import Optional
from uuid import UUID

import structlog

from src.core.config import Settings, get_settings
from src.core.errors import ValidationError

logger = structlog.get_logger(__name__)

ALLOWED_AVATAR_TYPES = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}


class UploadService:
    """Validate and persist uploaded avatar images."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.avatar_dir = Path(self.settings.upload_dir) / "avatars"

    def validate_avatar(self, content_type: Optional[str], size: int) -> str:
        """Check type and size; return the file extension to store under.

        Raises:
            ValidationError: Unsupported type or file too large.
        """
        extension = ALLOWED_AVATAR_TYPES.get((content_type or "").lower())
        if extension is None:
            raise ValidationError("Invalid file type. Only JPEG, PNG, and WebP are allowed.")
        if size > self.settings.max_avatar_size_bytes:
            raise ValidationError("File size exceeds 5MB limit")
        return extension

    async def save_avatar(
        self, user_id: UUID, content: bytes, content_type: Optional[str]
    ) -> str:
        """Store an avatar image and return its public URL."""
        if not content:
            raise ValidationError("No file uploaded")

        extension = self.validate_avatar(content_type, len(content))
        filename = f"{user_id}_{secrets.token_hex(4)}{extension}"
        path = self.avatar_dir / filename

        await asyncio.to_thread(self._write, path, content)
        logger.info("avatar_saved", user_id=str(user_id), filename=filename, size=len(content))

        return f"{self.settings.backend_url}/uploads/avatars/{filename}"

    @staticmethod
    def _write(path: Path, content: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
