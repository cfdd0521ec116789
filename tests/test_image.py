"""
Tests for photo preparation before OCR.
"""

import base64
import io

import pytest
from PIL import Image

from resort_finance.config import AppSettings
from resort_finance.services.image import InvalidImageError, prepare_image


def photo(size=(64, 48), mode="RGB", fmt="PNG") -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def settings():
    return AppSettings(max_upload_size_mb=1, supported_image_formats="jpg,jpeg,png")


class TestPrepareImage:
    """Tests for prepare_image."""

    def test_png_becomes_jpeg(self, settings):
        prepared = prepare_image(photo(mode="RGBA"), settings)

        assert prepared.original_format == "PNG"
        assert prepared.data[:2] == b"\xff\xd8"
        assert (prepared.width, prepared.height) == (64, 48)

    def test_large_photo_is_shrunk(self, settings):
        prepared = prepare_image(photo(size=(4096, 1024), fmt="JPEG"), settings)
        assert (prepared.width, prepared.height) == (2048, 512)

    def test_data_url(self, settings):
        prepared = prepare_image(photo(), settings)
        url = prepared.to_data_url()

        assert url.startswith("data:image/jpeg;base64,")
        assert base64.b64decode(url.split(",", 1)[1]) == prepared.data

    @pytest.mark.parametrize("payload,message", [
        (b"", "empty"),
        (b"%PDF-1.4", "Could not read"),
        (b"\x00" * (1024 * 1024 + 1), "larger than 1 MB"),
    ])
    def test_rejected_uploads(self, settings, payload, message):
        with pytest.raises(InvalidImageError, match=message):
            prepare_image(payload, settings)

    def test_format_not_accepted(self, settings):
        with pytest.raises(InvalidImageError, match="Unsupported image format GIF"):
            prepare_image(photo(mode="P", fmt="GIF"), settings)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
