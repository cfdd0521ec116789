"""
Image Preparation for OCR

Receipts and ID cards arrive as phone photos in whatever format the camera
produced. Before anything is sent to the vision model we:
1. Enforce the upload size limit and accepted formats
2. Decode with Pillow (rejects files that are not images)
3. Apply EXIF orientation, convert to RGB, cap the longest side
4. Re-encode as JPEG

CRITICAL: An unreadable image raises InvalidImageError BEFORE any OCR call.
"""

import base64
from dataclasses import dataclass
from io import BytesIO
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from resort_finance.config import get_settings
from resort_finance.config.settings import AppSettings


MAX_SIDE_PX = 2048
JPEG_QUALITY = 85

# Pillow format names for the extensions we accept
FORMAT_ALIASES = {
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "png": "PNG",
    "webp": "WEBP",
}


class InvalidImageError(Exception):
    """Upload is not a usable image."""
    pass


@dataclass(frozen=True)
class PreparedImage:
    """Normalized JPEG ready for the vision model."""
    data: bytes
    width: int
    height: int
    original_format: str
    mime_type: str = "image/jpeg"

    def to_data_url(self) -> str:
        """Inline evidence URL stored on the transaction."""
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


def prepare_image(
    image_bytes: bytes,
    settings: Optional[AppSettings] = None,
) -> PreparedImage:
    """Validate and normalize an uploaded photo."""
    settings = settings or get_settings().app

    if not image_bytes:
        raise InvalidImageError("Uploaded file is empty")
    if len(image_bytes) > settings.max_upload_size_bytes:
        raise InvalidImageError(
            f"Image is larger than {settings.max_upload_size_mb} MB"
        )

    try:
        img = Image.open(BytesIO(image_bytes))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidImageError(f"Could not read image: {e}")

    original_format = img.format or "UNKNOWN"
    accepted = {
        FORMAT_ALIASES.get(fmt, fmt.upper())
        for fmt in settings.supported_formats_list
    }
    if original_format not in accepted:
        raise InvalidImageError(
            f"Unsupported image format {original_format}; "
            f"use one of: {settings.supported_image_formats}"
        )

    img = ImageOps.exif_transpose(img)
    if img.mode != "RGB":
        img = img.convert("RGB")
    img.thumbnail((MAX_SIDE_PX, MAX_SIDE_PX))

    out = BytesIO()
    img.save(out, format="JPEG", quality=JPEG_QUALITY, optimize=True)

    return PreparedImage(
        data=out.getvalue(),
        width=img.width,
        height=img.height,
        original_format=original_format,
    )
