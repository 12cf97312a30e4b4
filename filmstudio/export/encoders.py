"""Encoders for finished rasters: PNG, JPEG and paged PDF."""

import io
import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np
from PIL import Image
from reportlab.lib.pagesizes import A4, landscape, portrait
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageGeometry:
    """Physical output page. Dimensions are portrait, in millimetres."""

    name: str
    width_mm: float
    height_mm: float
    margin_mm: float = 10.0

    def oriented_for(self, image_width: int, image_height: int) -> Tuple[float, float]:
        """Page size in points, landscape when the image is wider than tall."""
        size = (self.width_mm * mm, self.height_mm * mm)
        return landscape(size) if image_width > image_height else portrait(size)


A4_PAGE = PageGeometry(name='A4', width_mm=A4[0] / mm, height_mm=A4[1] / mm)


def fit_to_page(
    image_width: int,
    image_height: int,
    page_width: float,
    page_height: float,
    margin: float,
) -> Tuple[float, float, float, float]:
    """Largest uniformly scaled placement inside the margins, centred.

    Returns:
        (x, y, width, height) in page units, measured from the page origin
    """
    max_width = page_width - margin * 2
    max_height = page_height - margin * 2
    if max_width <= 0 or max_height <= 0:
        raise ValueError(f"Margin {margin} leaves no room on a {page_width}x{page_height} page")

    image_aspect = image_width / image_height
    if max_width / max_height > image_aspect:
        height = max_height
        width = height * image_aspect
    else:
        width = max_width
        height = width / image_aspect

    return ((page_width - width) / 2, (page_height - height) / 2, width, height)


def _to_pil(raster: np.ndarray) -> Image.Image:
    if raster.ndim == 3 and raster.shape[2] == 4:
        return Image.fromarray(np.ascontiguousarray(raster[:, :, :3]))
    return Image.fromarray(raster).convert('RGB')


def encode_png(raster: np.ndarray) -> bytes:
    buffer = io.BytesIO()
    _to_pil(raster).save(buffer, format='PNG', optimize=True)
    return buffer.getvalue()


def encode_jpeg(raster: np.ndarray, quality: int = 92) -> bytes:
    buffer = io.BytesIO()
    _to_pil(raster).save(buffer, format='JPEG', quality=quality)
    return buffer.getvalue()


def encode_pdf(
    rasters: Sequence[np.ndarray],
    page: PageGeometry = A4_PAGE,
    title: Optional[str] = 'Film Studio',
) -> bytes:
    """One PDF page per raster, each fitted inside the page margins.

    Args:
        rasters: uint8 RGB/RGBA rasters in page order
        page: Physical page geometry
        title: Small centred heading in the top margin, or None

    Returns:
        Encoded PDF document
    """
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=(page.width_mm * mm, page.height_mm * mm))
    if title:
        pdf.setTitle(title)

    margin = page.margin_mm * mm
    for index, raster in enumerate(rasters, 1):
        image_height, image_width = raster.shape[:2]
        page_width, page_height = page.oriented_for(image_width, image_height)
        pdf.setPageSize((page_width, page_height))

        x, y, width, height = fit_to_page(image_width, image_height, page_width, page_height, margin)

        if title:
            pdf.setFont('Helvetica-Oblique', 10)
            pdf.setFillColorRGB(120 / 255, 120 / 255, 120 / 255)
            pdf.drawCentredString(page_width / 2, page_height - (page.margin_mm / 2 + 3) * mm, title)

        pdf.drawImage(ImageReader(_to_pil(raster)), x, y, width=width, height=height)
        pdf.showPage()
        logger.debug(
            f"PDF page {index}: {image_width}x{image_height} raster at "
            f"{width / mm:.1f}x{height / mm:.1f}mm"
        )

    pdf.save()
    return buffer.getvalue()
