"""Bulk booking import."""

from resort_finance.services.importer.ota_import import (
    ImportFileError,
    ImportResult,
    ImportRowError,
    OTAImporter,
)

__all__ = [
    "ImportFileError",
    "ImportResult",
    "ImportRowError",
    "OTAImporter",
]
