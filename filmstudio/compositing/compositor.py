"""Compositor: place photos into template slots and apply the film look."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from filmstudio.compositing.assignment import IDENTITY_ADJUSTMENT, Photo, SlotAdjustment
from filmstudio.compositing.cropping import adjusted_source_rect, render_crop
from filmstudio.compositing.layers import (
    apply_dust,
    apply_grain,
    apply_light_leak,
    flatten,
    measure_text,
    premultiply,
    source_over,
    text_mask,
    vignette_layer,
)
from filmstudio.errors import CanvasContextUnavailable, ResourceDecodeFailure
from filmstudio.preprocessing.loader import ImageReference, decode_image, to_rgba
from filmstudio.slot_detection.detector import Slot, blank_mask
from filmstudio.styles.catalog import FilmStyle
from filmstudio.styles.filters import ColorFilter

logger = logging.getLogger(__name__)

Decoder = Callable[[ImageReference], np.ndarray]

DEFAULT_MAX_PIXELS = 100_000_000
DEFAULT_DECODE_WORKERS = 4

_CAPTION_TEXT = np.array([250, 248, 245], dtype=np.float32) / 255.0


def allocate_canvas(width: int, height: int, max_pixels: int = DEFAULT_MAX_PIXELS) -> np.ndarray:
    """Allocate a transparent premultiplied float32 RGBA canvas.

    Raises:
        CanvasContextUnavailable: For empty or oversized dimensions, or when
            memory runs out
    """
    if width <= 0 or height <= 0:
        raise CanvasContextUnavailable(f"Invalid canvas size {width}x{height}")
    if width * height > max_pixels:
        raise CanvasContextUnavailable(
            f"Canvas {width}x{height} exceeds the {max_pixels} pixel limit"
        )
    try:
        return np.zeros((height, width, 4), dtype=np.float32)
    except MemoryError as e:
        raise CanvasContextUnavailable(f"Out of memory allocating {width}x{height} canvas") from e


def decode_photos(
    photos: Sequence[Optional[Photo]],
    decoder: Optional[Decoder] = None,
    max_workers: int = DEFAULT_DECODE_WORKERS,
) -> List[Optional[np.ndarray]]:
    """Decode photos concurrently, keeping slot order.

    A photo that fails to decode comes back as None and is logged.
    """
    decoder = decoder or decode_image
    results: List[Optional[np.ndarray]] = [None] * len(photos)
    pending = [(i, p) for i, p in enumerate(photos) if p is not None]
    if not pending:
        return results

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(pending)))) as pool:
        futures = [(i, photo, pool.submit(decoder, photo.image_url)) for i, photo in pending]
        for i, photo, future in futures:
            try:
                results[i] = to_rgba(future.result())
            except (ResourceDecodeFailure, OSError, ValueError) as e:
                # Custom decoders may raise plain IO/value errors
                logger.warning(f"Skipping slot {i + 1}: photo {photo.id} failed to load: {e}")

    return results


def draw_photo(
    canvas: np.ndarray,
    photo_rgba: np.ndarray,
    slot: Slot,
    adjustment: SlotAdjustment,
    color_filter: ColorFilter,
) -> None:
    """Draw one photo into its slot with a cover crop and the given filter.

    Args:
        canvas: Working canvas, premultiplied float32 RGBA, modified in place
        photo_rgba: Decoded photo, uint8 RGBA
        slot: Destination rectangle
        adjustment: Pan/zoom for this slot
        color_filter: Colour transform applied to the photo only
    """
    src_h, src_w = photo_rgba.shape[:2]
    rect = adjusted_source_rect(src_w, src_h, slot.width, slot.height, adjustment)
    crop = render_crop(photo_rgba.astype(np.float32) / 255.0, rect, slot.width, slot.height)
    crop = color_filter.apply(crop)
    source_over(canvas, premultiply(crop), (slot.x, slot.y))


def _template_overlay(template_rgba: np.ndarray, filled_slots: Sequence[Slot]) -> np.ndarray:
    """Template as a premultiplied layer with blank slot pixels knocked out.

    Blank template pixels inside a filled slot become transparent so the photo
    shows; everything else (borders, sprockets, frame numbers) stays opaque.
    """
    layer = template_rgba.astype(np.float32) / 255.0
    if filled_slots:
        blank = blank_mask(template_rgba)
        knockout = np.zeros(blank.shape, dtype=bool)
        for slot in filled_slots:
            x1, y1, x2, y2 = slot.bbox
            knockout[max(y1, 0):max(y2, 0), max(x1, 0):max(x2, 0)] = True
        layer[:, :, 3][knockout & blank] = 0.0
    return premultiply(layer)


def _draw_caption(rgb: np.ndarray, slot: Slot, caption: str) -> None:
    """Caption centred in a translucent band at the bottom of a slot."""
    pixel_height = max(8, min(24, slot.height // 12))
    pad = max(2, pixel_height // 3)
    text_width, text_height = measure_text(caption, pixel_height)

    band_top = slot.y + slot.height - text_height - pad * 2
    band = rgb[max(band_top, slot.y):slot.y + slot.height, slot.x:slot.x + slot.width]
    band *= 0.55

    origin = (slot.x + max(0, (slot.width - text_width) // 2), slot.y + slot.height - pad)
    height, width = rgb.shape[:2]
    mask = text_mask(width, height, caption, pixel_height, origin)[:, :, None]
    x1, y1, x2, y2 = slot.bbox
    region = rgb[y1:y2, x1:x2]
    region_mask = mask[y1:y2, x1:x2]
    region *= 1.0 - region_mask
    region += _CAPTION_TEXT * region_mask


def compose_page(
    template: np.ndarray,
    slots: Sequence[Slot],
    assignment: Sequence[Optional[Photo]],
    adjustments: Optional[Mapping[int, SlotAdjustment]] = None,
    style: Optional[FilmStyle] = None,
    *,
    rng: Optional[np.random.Generator] = None,
    decoder: Optional[Decoder] = None,
    draw_captions: bool = False,
    max_workers: int = DEFAULT_DECODE_WORKERS,
    max_pixels: int = DEFAULT_MAX_PIXELS,
) -> Tuple[np.ndarray, List[int]]:
    """Composite photos into a template and flatten the result.

    Layer order:
    1. Each assigned photo, cover-cropped and adjusted, with the style filter
    2. Per-slot radial vignette
    3. Template ink on top (blank slot pixels knocked out where filled)
    4. Optional captions
    5. Whole-image grain (overlay), dust (normal), light leak (screen)

    Args:
        template: Template pixel buffer, uint8 RGB/RGBA; not modified
        slots: Ordered slots in template coordinates
        assignment: Photo (or None) per slot, in slot order
        adjustments: Optional per-slot-index SlotAdjustment
        style: Film style; None draws photos and template only
        rng: Noise source for grain and dust. Unseeded when omitted
        decoder: Callable turning a photo reference into pixels
        draw_captions: Stamp photo captions at the bottom of their slots
        max_workers: Concurrent photo decodes
        max_pixels: Refuse canvases larger than this

    Returns:
        Opaque uint8 RGBA array with the template's dimensions, and the
        indices of the slots that actually received a photo

    Raises:
        CanvasContextUnavailable: If the output canvas cannot be allocated
        ValueError: If more photos than slots are assigned
    """
    if len(assignment) > len(slots):
        raise ValueError(f"{len(assignment)} assignments for {len(slots)} slots")

    template_rgba = to_rgba(template)
    height, width = template_rgba.shape[:2]
    canvas = allocate_canvas(width, height, max_pixels)

    adjustments = adjustments or {}
    color_filter = style.color_filter() if style else ColorFilter()
    vignette = style.vignette / 100.0 if style else 0.0

    photos = list(assignment) + [None] * (len(slots) - len(assignment))
    decoded = decode_photos(photos, decoder, max_workers)

    filled: List[Slot] = []
    placed: List[int] = []
    for index, (slot, photo, pixels) in enumerate(zip(slots, photos, decoded)):
        if photo is None or pixels is None:
            continue
        adjustment = adjustments.get(index, IDENTITY_ADJUSTMENT)
        draw_photo(canvas, pixels, slot, adjustment, color_filter)
        if vignette > 0:
            source_over(canvas, vignette_layer(slot.width, slot.height, vignette), (slot.x, slot.y))
        filled.append(slot)
        placed.append(index)
        logger.debug(f"Drew photo {photo.id} into slot {index + 1} at ({slot.x}, {slot.y})")

    source_over(canvas, _template_overlay(template_rgba, filled))
    rgb = flatten(canvas)

    if draw_captions:
        for slot, photo, pixels in zip(slots, photos, decoded):
            if photo is not None and pixels is not None and photo.caption:
                _draw_caption(rgb, slot, photo.short_caption())

    if style is not None and (style.grain > 0 or style.dust_opacity > 0):
        rng = rng if rng is not None else np.random.default_rng()
        if style.grain > 0:
            rgb = apply_grain(rgb, style.grain, rng)
        if style.dust_opacity > 0:
            rgb = apply_dust(rgb, style.dust_opacity, rng)

    if style is not None and style.light_leak_opacity > 0:
        rgb = apply_light_leak(rgb, style.light_leak_opacity)

    logger.info(
        f"Composited {len(filled)}/{len(slots)} slot(s) into {width}x{height} raster"
        + (f" with style '{style.id}'" if style else "")
    )

    out = np.empty((height, width, 4), dtype=np.uint8)
    out[:, :, :3] = np.clip(rgb * 255.0 + 0.5, 0, 255).astype(np.uint8)
    out[:, :, 3] = 255
    return out, placed


def compose(
    template: np.ndarray,
    slots: Sequence[Slot],
    assignment: Sequence[Optional[Photo]],
    adjustments: Optional[Mapping[int, SlotAdjustment]] = None,
    style: Optional[FilmStyle] = None,
    **kwargs,
) -> np.ndarray:
    """Composite photos into a template; see ``compose_page`` for the arguments."""
    raster, _ = compose_page(template, slots, assignment, adjustments, style, **kwargs)
    return raster
