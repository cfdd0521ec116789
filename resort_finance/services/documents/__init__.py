"""Document context for printed front desk documents."""

from resort_finance.services.documents.context import (
    DocumentContext,
    DocumentKind,
    DocumentRendererInterface,
    build_document_context,
    split_vat,
)

__all__ = [
    "DocumentContext",
    "DocumentKind",
    "DocumentRendererInterface",
    "build_document_context",
    "split_vat",
]
