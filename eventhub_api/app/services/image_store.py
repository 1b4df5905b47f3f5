"""
Storage for event images.

Images arrive as multipart uploads on event creation and update.  The
file is written to ``settings.upload_dir`` under a generated name and
the event keeps the public reference ``/public/uploads/<name>``.
Serving that path is left to the web server in front of the API.
"""

import logging
import os
import re
import uuid
from pathlib import Path
from typing import Optional

from starlette.datastructures import UploadFile

from ..core.config import Settings
from ..core.errors import ValidationError


logger = logging.getLogger(__name__)

URL_PREFIX = "/public/uploads"
ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}


def _safe_stem(filename: str) -> str:
    stem = re.sub(r"[^a-z0-9]+", "-", Path(filename).stem.lower()).strip("-")
    return stem[:40] or "image"


class ImageStore:
    """Write uploaded images to disk and hand back their public reference."""

    def __init__(self, upload_dir: str, max_size: int = 5 * 1024 * 1024) -> None:
        self.upload_dir = Path(upload_dir)
        self.max_size = max_size

    @classmethod
    def from_settings(cls, settings: Settings) -> "ImageStore":
        upload_dir = settings.upload_dir
        if not os.path.isabs(upload_dir):
            base_dir = Path(__file__).resolve().parent.parent.parent.parent
            upload_dir = str(base_dir / upload_dir)
        return cls(upload_dir, max_size=settings.max_upload_size)

    async def save(self, upload: UploadFile) -> str:
        """Store ``upload`` and return ``/public/uploads/<name>``.

        Only common image extensions are accepted, up to ``max_size``
        bytes; anything else raises ``ValidationError``.
        """
        filename = upload.filename or ""
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                f"Image must be one of: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
            )
        content = await upload.read(self.max_size + 1)
        if not content:
            raise ValidationError("Image file is empty")
        if len(content) > self.max_size:
            raise ValidationError(f"Image must be at most {self.max_size} bytes")

        name = f"{_safe_stem(filename)}-{uuid.uuid4().hex[:12]}{ext}"
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        (self.upload_dir / name).write_bytes(content)
        logger.info("Stored image %s (%d bytes)", name, len(content))
        return f"{URL_PREFIX}/{name}"

    def path_for(self, image_ref: str) -> Optional[Path]:
        """Return the file behind a reference produced by ``save``, if any."""
        if not image_ref or not image_ref.startswith(URL_PREFIX + "/"):
            return None
        name = image_ref[len(URL_PREFIX) + 1:]
        if not name or "/" in name or name.startswith("."):
            return None
        return self.upload_dir / name

    def discard(self, image_ref: Optional[str]) -> None:
        """Remove a stored image; used when the event write did not happen."""
        path = self.path_for(image_ref) if image_ref else None
        if path is not None:
            path.unlink(missing_ok=True)
