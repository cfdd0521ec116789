"""Image preparation services."""

from resort_finance.services.image.preprocess import (
    InvalidImageError,
    PreparedImage,
    prepare_image,
)

__all__ = [
    "InvalidImageError",
    "PreparedImage",
    "prepare_image",
]
