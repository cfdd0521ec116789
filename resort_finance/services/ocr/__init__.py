"""OCR services."""

from resort_finance.services.ocr.gemini_service import (
    ExtractionFailedError,
    GeminiOCRService,
    OCRError,
    ZeroAmountExtractionError,
)

__all__ = [
    "ExtractionFailedError",
    "GeminiOCRService",
    "OCRError",
    "ZeroAmountExtractionError",
]
