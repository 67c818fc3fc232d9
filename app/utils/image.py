"""
Image format detection for uploaded photos.
The format is read from the bytes themselves; declared filenames and content types are not trusted.
"""
import io
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError


@dataclass(frozen=True)
class ImageFormat:
    mime_type: str
    extension: str


# Pillow format name -> what we store and serve
ALLOWED_IMAGE_FORMATS = {
    "JPEG": ImageFormat("image/jpeg", "jpeg"),
    "PNG": ImageFormat("image/png", "png"),
    "GIF": ImageFormat("image/gif", "gif"),
    "WEBP": ImageFormat("image/webp", "webp"),
    "BMP": ImageFormat("image/bmp", "bmp"),
    "TIFF": ImageFormat("image/tiff", "tiff"),
}

MIME_TYPES_BY_EXTENSION = {f.extension: f.mime_type for f in ALLOWED_IMAGE_FORMATS.values()}


def validate_image_format(payload: bytes) -> ImageFormat | None:
    """Return the detected format if payload is a non-empty image on the allow-list, else None."""
    if not payload:
        return None
    try:
        with Image.open(io.BytesIO(payload)) as image:
            name = image.format
            image.verify()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError):
        return None
    return ALLOWED_IMAGE_FORMATS.get(name or "")
