"""Pagination and encoding of composited film strips."""

from filmstudio.export.encoders import (
    A4_PAGE,
    PageGeometry,
    encode_jpeg,
    encode_pdf,
    encode_png,
    fit_to_page,
)
from filmstudio.export.paginator import (
    EXPORT_FORMATS,
    PAGED_DOCUMENT,
    SINGLE_IMAGE_JPEG,
    SINGLE_IMAGE_PNG,
    ExportedFile,
    ExportedPage,
    ExportResult,
    export,
    normalize_format,
    paginate,
)

__all__ = [
    "A4_PAGE",
    "PageGeometry",
    "encode_jpeg",
    "encode_pdf",
    "encode_png",
    "fit_to_page",
    "EXPORT_FORMATS",
    "PAGED_DOCUMENT",
    "SINGLE_IMAGE_JPEG",
    "SINGLE_IMAGE_PNG",
    "ExportedFile",
    "ExportedPage",
    "ExportResult",
    "export",
    "normalize_format",
    "paginate",
]
