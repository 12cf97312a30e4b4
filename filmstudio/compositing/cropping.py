"""Cover-fit cropping of a photo into a slot."""

import logging
from dataclasses import dataclass

import cv2
import numpy as np

from filmstudio.compositing.assignment import SlotAdjustment

logger = logging.getLogger(__name__)

# Below this source-to-destination ratio the photo is area-downsampled first
_PREDOWNSCALE_THRESHOLD = 0.5


@dataclass(frozen=True)
class SourceRect:
    """Region of the source photo to sample, in source pixel coordinates."""

    x: float
    y: float
    width: float
    height: float


def cover_crop(image_width: int, image_height: int, slot_width: int, slot_height: int) -> SourceRect:
    """Largest centred source rectangle with the slot's aspect ratio."""
    image_aspect = image_width / image_height
    slot_aspect = slot_width / slot_height

    if image_aspect > slot_aspect:
        width = image_height * slot_aspect
        return SourceRect((image_width - width) / 2, 0.0, width, float(image_height))

    height = image_width / slot_aspect
    return SourceRect(0.0, (image_height - height) / 2, float(image_width), height)


def adjusted_source_rect(
    image_width: int,
    image_height: int,
    slot_width: int,
    slot_height: int,
    adjustment: SlotAdjustment,
) -> SourceRect:
    """Cover crop shifted by the adjustment offsets and shrunk by its scale.

    Offsets move the crop by ``offset * 0.5 * size`` (positive offsets reveal
    more of the left/top of the photo); scaling keeps the top-left corner.
    """
    rect = cover_crop(image_width, image_height, slot_width, slot_height)
    x = rect.x - adjustment.offset_x * rect.width * 0.5
    y = rect.y - adjustment.offset_y * rect.height * 0.5
    return SourceRect(x, y, rect.width / adjustment.scale, rect.height / adjustment.scale)


def render_crop(image: np.ndarray, rect: SourceRect, dest_width: int, dest_height: int) -> np.ndarray:
    """Sample ``rect`` of the image stretched to the destination size.

    Parts of the rectangle outside the photo come back fully transparent.

    Args:
        image: Source photo, float32 straight-alpha RGBA [0, 1], shape (H, W, 4)
        rect: Source region to sample (may extend past the photo edges)
        dest_width: Output width in pixels
        dest_height: Output height in pixels

    Returns:
        Float32 straight-alpha RGBA [0, 1], shape (dest_height, dest_width, 4)
    """
    src_h, src_w = image.shape[:2]
    sx, sy, sw, sh = rect.x, rect.y, rect.width, rect.height

    ratio = min(dest_width / sw, dest_height / sh)
    if ratio < _PREDOWNSCALE_THRESHOLD:
        new_w = max(1, int(round(src_w * ratio)))
        new_h = max(1, int(round(src_h * ratio)))
        image = cv2.resize(image, (new_w, new_h), interpolation=cv2.INTER_AREA)
        fx, fy = new_w / src_w, new_h / src_h
        sx, sw, sy, sh = sx * fx, sw * fx, sy * fy, sh * fy
        logger.debug(f"Pre-downscaled source {src_w}x{src_h} -> {new_w}x{new_h}")

    step_x = sw / dest_width
    step_y = sh / dest_height
    # Destination pixel centres mapped back into source space
    matrix = np.array([
        [step_x, 0.0, sx + 0.5 * step_x - 0.5],
        [0.0, step_y, sy + 0.5 * step_y - 0.5],
    ], dtype=np.float64)
    warped = cv2.warpAffine(
        np.ascontiguousarray(image, dtype=np.float32), matrix, (dest_width, dest_height),
        flags=cv2.INTER_LINEAR | cv2.WARP_INVERSE_MAP, borderMode=cv2.BORDER_REPLICATE,
    )

    # Coverage: which destination pixel centres land on the photo at all
    src_h, src_w = image.shape[:2]
    centres_x = matrix[0, 2] + np.arange(dest_width) * step_x
    centres_y = matrix[1, 2] + np.arange(dest_height) * step_y
    inside_x = (centres_x >= -0.5) & (centres_x <= src_w - 0.5)
    inside_y = (centres_y >= -0.5) & (centres_y <= src_h - 0.5)
    warped[:, :, 3] *= np.outer(inside_y, inside_x).astype(np.float32)

    return warped
