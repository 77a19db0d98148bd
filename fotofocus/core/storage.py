"""
Blob storage for uploaded images.

Uploads are validated (content type, magic bytes, size), normalised with
Pillow and written under ``uploads_dir``. The stable reference handed back to
callers is the public path ``/uploads/<folder>/<name>.jpg``. Deleting a blob is
best effort: failures are logged and reported as False, never raised.
"""

from __future__ import annotations

import io
import logging
import os
import secrets
import time

from PIL import Image, ImageOps, UnidentifiedImageError

from .errors import ValidationError

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads/"
MAX_UPLOAD_BYTES = 8 * 1024 * 1024
JPEG_MAGIC = b"\xFF\xD8\xFF"
PNG_MAGIC = b"\x89PNG\r\n\x1a\n"
WEBP_MAGIC = b"RIFF"
ALLOWED_TYPES = {"image/jpeg", "image/jpg", "image/pjpeg", "image/png", "image/webp"}


def _has_valid_signature(data: bytes, content_type: str) -> bool:
    if content_type in {"image/jpeg", "image/jpg", "image/pjpeg"}:
        return data.startswith(JPEG_MAGIC)
    if content_type == "image/png":
        return data.startswith(PNG_MAGIC)
    if content_type == "image/webp":
        return data.startswith(WEBP_MAGIC) and data[8:12] == b"WEBP"
    return False


class LocalBlobStorage:
    """Stores images on the local filesystem."""

    def __init__(self, root: str) -> None:
        self.root = os.path.abspath(root)

    def _path_for(self, ref: str) -> str | None:
        if not ref or not ref.startswith(PUBLIC_PREFIX):
            return None
        rel = ref[len(PUBLIC_PREFIX) :].split("?", 1)[0]
        path = os.path.abspath(os.path.join(self.root, rel))
        if os.path.commonpath([path, self.root]) != self.root:
            return None
        return path

    def save(self, data: bytes, content_type: str | None, *, folder: str, max_size: tuple[int, int] = (2048, 2048)) -> str:
        ct = (content_type or "").lower()
        if ct not in ALLOWED_TYPES:
            raise ValidationError("Unsupported image format (use JPEG, PNG or WEBP)")
        if not data:
            raise ValidationError("Empty image")
        if len(data) > MAX_UPLOAD_BYTES:
            raise ValidationError("Image is too large")
        if not _has_valid_signature(data, ct):
            raise ValidationError("Invalid image file")
        try:
            image = Image.open(io.BytesIO(data))
            image = ImageOps.exif_transpose(image)
        except (UnidentifiedImageError, OSError) as exc:
            raise ValidationError("Invalid image file") from exc
        image = image.convert("RGB")
        image.thumbnail(max_size, Image.LANCZOS)
        buffer = io.BytesIO()
        image.save(buffer, format="JPEG", quality=85, optimize=True)

        name = f"{int(time.time() * 1000)}_{secrets.token_hex(6)}.jpg"
        dest_dir = os.path.join(self.root, folder)
        os.makedirs(dest_dir, exist_ok=True)
        with open(os.path.join(dest_dir, name), "wb") as f:
            f.write(buffer.getvalue())
        return f"{PUBLIC_PREFIX}{folder}/{name}"

    def delete(self, ref: str | None) -> bool:
        if not ref:
            return False
        path = self._path_for(ref)
        if path is None:
            logger.warning("Refusing to delete blob outside uploads dir: %s", ref)
            return False
        try:
            os.remove(path)
        except FileNotFoundError:
            return False
        except OSError as exc:
            logger.warning("Failed to delete blob %s: %s", ref, exc)
            return False
        return True
