"""Services package."""

from resort_finance.services.documents import (
    DocumentContext,
    DocumentKind,
    build_document_context,
)
from resort_finance.services.image import (
    InvalidImageError,
    prepare_image,
)
from resort_finance.services.importer import (
    ImportFileError,
    ImportResult,
    OTAImporter,
)
from resort_finance.services.ocr import (
    ExtractionFailedError,
    GeminiOCRService,
    OCRError,
    ZeroAmountExtractionError,
)
from resort_finance.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    CorruptDataError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsSnapshotStorage,
    LocalJSONStorage,
    SnapshotStorageInterface,
    StorageError,
)

__all__ = [
    # Documents
    "DocumentContext",
    "DocumentKind",
    "build_document_context",
    # Image services
    "InvalidImageError",
    "prepare_image",
    # Import
    "ImportFileError",
    "ImportResult",
    "OTAImporter",
    # OCR services
    "ExtractionFailedError",
    "GeminiOCRService",
    "OCRError",
    "ZeroAmountExtractionError",
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "CorruptDataError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsSnapshotStorage",
    "LocalJSONStorage",
    "SnapshotStorageInterface",
    "StorageError",
]
