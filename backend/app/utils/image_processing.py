"""Image preparation for the vision model.

Stored images are always kept byte-identical to the upload.  The vision
model however only reads PNG, JPEG and WEBP, so HEIC/HEIF photographs
are decoded with Pillow (through the ``pillow-heif`` opener) and
re-encoded as JPEG just for the extraction call.
"""

from __future__ import annotations

from io import BytesIO
from typing import Tuple

from PIL import Image, ImageOps, UnidentifiedImageError
from pillow_heif import register_heif_opener

from app.core.errors import InvalidDataError

register_heif_opener()

VISION_NATIVE_TYPES = frozenset({"image/png", "image/jpeg", "image/webp"})


def heic_to_jpeg(image_data: bytes, quality: int = 90) -> bytes:
    """Decode a HEIC/HEIF image and return it as JPEG bytes.

    EXIF orientation is applied so rotated phone photos reach the model
    upright.
    """
    try:
        with Image.open(BytesIO(image_data)) as img:
            img = ImageOps.exif_transpose(img)
            img = img.convert("RGB")
            out = BytesIO()
            img.save(out, format="JPEG", quality=quality)
            return out.getvalue()
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise InvalidDataError(["image: could not be decoded."]) from exc


def prepare_for_vision(image_data: bytes, mime_type: str) -> Tuple[bytes, str]:
    """Return ``(data, mime_type)`` in a format the vision model accepts."""
    if mime_type in VISION_NATIVE_TYPES:
        return image_data, mime_type
    return heic_to_jpeg(image_data), "image/jpeg"
