"""Pagination of photos across template copies and packaging of the output."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Sequence, Tuple

import numpy as np

from filmstudio.compositing.assignment import Photo, SlotAdjustment
from filmstudio.compositing.compositor import (
    DEFAULT_DECODE_WORKERS,
    DEFAULT_MAX_PIXELS,
    Decoder,
    compose_page,
)
from filmstudio.errors import NoPhotosProvided, NoSlotsDetected
from filmstudio.export.encoders import A4_PAGE, PageGeometry, encode_jpeg, encode_pdf, encode_png
from filmstudio.slot_detection.detector import Slot
from filmstudio.styles.catalog import FilmStyle

logger = logging.getLogger(__name__)

SINGLE_IMAGE_PNG = 'single-image-png'
SINGLE_IMAGE_JPEG = 'single-image-jpeg'
PAGED_DOCUMENT = 'paged-document'

EXPORT_FORMATS = (SINGLE_IMAGE_PNG, SINGLE_IMAGE_JPEG, PAGED_DOCUMENT)

FORMAT_ALIASES = {
    'png': SINGLE_IMAGE_PNG,
    'jpeg': SINGLE_IMAGE_JPEG,
    'jpg': SINGLE_IMAGE_JPEG,
    'pdf': PAGED_DOCUMENT,
}

_MEDIA_TYPES = {
    SINGLE_IMAGE_PNG: ('png', 'image/png'),
    SINGLE_IMAGE_JPEG: ('jpg', 'image/jpeg'),
    PAGED_DOCUMENT: ('pdf', 'application/pdf'),
}

DEFAULT_PAGE_WORKERS = 4


@dataclass
class ExportedFile:
    """One deliverable: encoded bytes plus a suggested filename."""

    filename: str
    data: bytes
    media_type: str


@dataclass
class ExportedPage:
    """One composited sheet.

    ``photos`` lists only the photos actually drawn, in slot order; a photo
    that failed to decode appears in ``assigned_photos`` but not in ``photos``.
    """

    index: int
    raster: np.ndarray
    photos: List[Photo] = field(default_factory=list)
    assigned_photos: List[Photo] = field(default_factory=list)


@dataclass
class ExportResult:
    """Everything produced by one export call."""

    format: str
    files: List[ExportedFile]
    pages: List[ExportedPage]

    @property
    def page_count(self) -> int:
        return len(self.pages)


def normalize_format(export_format: str) -> str:
    """Map a format token or alias to its canonical name."""
    token = export_format.strip().lower()
    token = FORMAT_ALIASES.get(token, token)
    if token not in EXPORT_FORMATS:
        raise ValueError(
            f"Unknown export format {export_format!r} "
            f"(expected one of {', '.join(EXPORT_FORMATS + tuple(FORMAT_ALIASES))})"
        )
    return token


def paginate(photos: Sequence[Photo], slot_count: int) -> List[List[Photo]]:
    """Split photos into consecutive chunks of ``slot_count``; the last may be short."""
    if slot_count < 1:
        raise NoSlotsDetected()
    return [list(photos[i:i + slot_count]) for i in range(0, len(photos), slot_count)]


def export(
    photos: Sequence[Photo],
    template: np.ndarray,
    slots: Sequence[Slot],
    style: Optional[FilmStyle],
    export_format: str,
    *,
    adjustments: Optional[Mapping[int, SlotAdjustment]] = None,
    rng: Optional[np.random.Generator] = None,
    decoder: Optional[Decoder] = None,
    page: PageGeometry = A4_PAGE,
    basename: str = 'film-strip',
    title: Optional[str] = 'Film Studio',
    jpeg_quality: int = 92,
    draw_captions: bool = False,
    max_workers: int = DEFAULT_DECODE_WORKERS,
    page_workers: int = DEFAULT_PAGE_WORKERS,
    max_pixels: int = DEFAULT_MAX_PIXELS,
) -> ExportResult:
    """Composite every photo across as many template copies as needed and encode them.

    Args:
        photos: Photos in fill order
        template: Template pixel buffer shared by every page
        slots: Slots of the template in fill order
        style: Film style applied to every page
        export_format: 'single-image-png', 'single-image-jpeg', 'paged-document'
            (or 'png', 'jpeg', 'jpg', 'pdf')
        adjustments: Per-slot-index adjustments, reused on every page
        rng: Grain/dust source; each page gets an independent child generator
        decoder: Photo decoder passed to the compositor
        page: Output page geometry for paged documents
        basename: Filename stem for the output files
        title: Heading printed in paged documents, or None
        jpeg_quality: Quality for JPEG output
        draw_captions: Stamp photo captions into their slots
        max_workers: Concurrent photo decodes per page
        page_workers: Pages composited concurrently
        max_pixels: Canvas size limit per page

    Returns:
        ExportResult with encoded files and the per-page rasters

    Raises:
        NoPhotosProvided: If ``photos`` is empty
        NoSlotsDetected: If ``slots`` is empty
        ValueError: For an unknown format
    """
    if not photos:
        raise NoPhotosProvided()
    if not slots:
        raise NoSlotsDetected()
    export_format = normalize_format(export_format)

    chunks = paginate(photos, len(slots))
    page_rngs: List[Optional[np.random.Generator]] = (
        list(rng.spawn(len(chunks))) if rng is not None else [None] * len(chunks)
    )

    logger.info(
        f"Exporting {len(photos)} photo(s) over {len(chunks)} page(s) "
        f"of {len(slots)} slot(s) as {export_format}"
    )

    def _compose_page(index: int) -> Tuple[np.ndarray, List[int]]:
        return compose_page(
            template,
            slots,
            chunks[index],
            adjustments,
            style,
            rng=page_rngs[index],
            decoder=decoder,
            draw_captions=draw_captions,
            max_workers=max_workers,
            max_pixels=max_pixels,
        )

    workers = max(1, min(page_workers, len(chunks)))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        composed = list(pool.map(_compose_page, range(len(chunks))))

    rasters = [raster for raster, _ in composed]
    pages = [
        ExportedPage(
            index=i,
            raster=raster,
            photos=[chunks[i][slot] for slot in placed],
            assigned_photos=chunks[i],
        )
        for i, (raster, placed) in enumerate(composed)
    ]

    extension, media_type = _MEDIA_TYPES[export_format]
    if export_format == PAGED_DOCUMENT:
        files = [ExportedFile(f"{basename}.{extension}", encode_pdf(rasters, page, title), media_type)]
    else:
        files = []
        for i, raster in enumerate(rasters, 1):
            suffix = f"-{i:02d}" if len(rasters) > 1 else ""
            if export_format == SINGLE_IMAGE_PNG:
                data = encode_png(raster)
            else:
                data = encode_jpeg(raster, jpeg_quality)
            files.append(ExportedFile(f"{basename}{suffix}.{extension}", data, media_type))

    logger.info(f"Export complete: {len(files)} file(s), {len(pages)} page(s)")

    return ExportResult(format=export_format, files=files, pages=pages)
