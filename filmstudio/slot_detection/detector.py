"""Slot detection: find the blank photo windows embedded in a template image."""

import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

import numpy as np

from filmstudio.preprocessing.loader import to_rgba

logger = logging.getLogger(__name__)

# Blank-pixel classification thresholds (8-bit channel scale)
BLANK_MIN_BRIGHTNESS = 220
BLANK_MAX_SATURATION = 0.15
BLANK_MIN_ALPHA = 200

SLOT_PADDING = 4
ROW_TOLERANCE = 30


@dataclass(frozen=True)
class Slot:
    """A rectangular photo window in template pixel coordinates."""

    x: int
    y: int
    width: int
    height: int
    frame_number: Optional[int] = None

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Slot must have positive size, got {self.width}x{self.height}")

    @property
    def bbox(self) -> Tuple[int, int, int, int]:
        """(x1, y1, x2, y2) with exclusive right/bottom edges."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    def fits_within(self, width: int, height: int) -> bool:
        return self.x >= 0 and self.y >= 0 and self.x + self.width <= width and self.y + self.height <= height


@dataclass(frozen=True)
class DetectionProfile:
    """Thresholds deciding when a blank region is large enough to be a slot.

    Attributes:
        min_size_ratio: Region bbox width and height must exceed this fraction
            of the template's shorter side.
        min_fill_ratio: Region pixel count must exceed this fraction of
            minSize squared, rejecting thin or L-shaped noise.
    """

    name: str
    min_size_ratio: float
    min_fill_ratio: float


STUDIO_PROFILE = DetectionProfile(name="studio", min_size_ratio=0.06, min_fill_ratio=0.4)
UPLOAD_PROFILE = DetectionProfile(name="upload", min_size_ratio=0.08, min_fill_ratio=0.5)

PROFILES = {p.name: p for p in (STUDIO_PROFILE, UPLOAD_PROFILE)}


@dataclass
class _Region:
    """Connected blank region found by flood fill."""

    min_x: int
    min_y: int
    max_x: int
    max_y: int
    pixel_count: int


def blank_mask(image: np.ndarray) -> np.ndarray:
    """Classify every pixel as blank (slot material) or not.

    A pixel is blank when it is bright, nearly achromatic and opaque.

    Args:
        image: Pixel buffer, RGB or RGBA

    Returns:
        Boolean mask with shape (H, W)
    """
    rgba = to_rgba(image).astype(np.int32)
    r, g, b, a = rgba[:, :, 0], rgba[:, :, 1], rgba[:, :, 2], rgba[:, :, 3]

    brightness = (r + g + b) / 3.0
    max_channel = np.maximum(np.maximum(r, g), b)
    min_channel = np.minimum(np.minimum(r, g), b)
    saturation = np.zeros(max_channel.shape, dtype=np.float64)
    nonzero = max_channel > 0
    saturation[nonzero] = (max_channel[nonzero] - min_channel[nonzero]) / max_channel[nonzero]

    return (brightness > BLANK_MIN_BRIGHTNESS) & (saturation < BLANK_MAX_SATURATION) & (a > BLANK_MIN_ALPHA)


def _flood_fill(mask: np.ndarray, visited: np.ndarray, start_x: int, start_y: int) -> _Region:
    """Collect the 4-connected blank region containing the seed.

    Iterative scanline fill over an explicit stack: each popped point grows
    into its full horizontal run, then unvisited runs directly above and below
    are pushed. Visited pixels are marked so no pixel is counted twice.
    """
    height, width = mask.shape
    stack = [(start_x, start_y)]
    region = _Region(start_x, start_y, start_x, start_y, 0)

    while stack:
        x, y = stack.pop()
        if visited[y, x] or not mask[y, x]:
            continue

        row_open = mask[y] & ~visited[y]

        blocked_left = np.flatnonzero(~row_open[:x])
        left = int(blocked_left[-1]) + 1 if blocked_left.size else 0
        blocked_right = np.flatnonzero(~row_open[x + 1:])
        right = x + int(blocked_right[0]) if blocked_right.size else width - 1

        visited[y, left:right + 1] = True
        region.pixel_count += right - left + 1
        region.min_x = min(region.min_x, left)
        region.max_x = max(region.max_x, right)
        region.min_y = min(region.min_y, y)
        region.max_y = max(region.max_y, y)

        for ny in (y - 1, y + 1):
            if ny < 0 or ny >= height:
                continue
            candidates = mask[ny, left:right + 1] & ~visited[ny, left:right + 1]
            if not candidates.any():
                continue
            # One seed per run start keeps the stack proportional to run count
            starts = np.flatnonzero(candidates & ~np.concatenate(([False], candidates[:-1])))
            for offset in starts:
                stack.append((left + int(offset), ny))

    return region


def sort_reading_order(slots: List[Slot], row_tolerance: int = ROW_TOLERANCE) -> List[Slot]:
    """Order slots row-major: top-to-bottom bands, left-to-right inside a band.

    A band opens at the topmost remaining slot and takes every slot whose top
    edge lies within ``row_tolerance`` pixels of it.
    """
    by_y = sorted(slots, key=lambda s: (s.y, s.x))
    ordered: List[Slot] = []
    band: List[Slot] = []
    band_top = None

    for slot in by_y:
        if band_top is not None and slot.y - band_top > row_tolerance:
            ordered.extend(sorted(band, key=lambda s: (s.x, s.y)))
            band = []
            band_top = None
        if band_top is None:
            band_top = slot.y
        band.append(slot)

    ordered.extend(sorted(band, key=lambda s: (s.x, s.y)))
    return ordered


def detect_slots(
    image: np.ndarray,
    min_size_ratio: float = STUDIO_PROFILE.min_size_ratio,
    min_fill_ratio: float = STUDIO_PROFILE.min_fill_ratio,
    padding: int = SLOT_PADDING,
    row_tolerance: int = ROW_TOLERANCE,
) -> List[Slot]:
    """Detect the rectangular photo slots of a template image.

    The algorithm:
    1. Classify pixels as blank (bright, low saturation, opaque)
    2. Sample seed points on a grid (stride = 1% of the shorter side)
    3. Flood-fill each unvisited blank seed into its connected region
    4. Keep regions that are large and solidly filled
    5. Shrink kept boxes by the padding so photos never touch border art
    6. Sort into reading order and number the frames

    Args:
        image: Template pixel buffer, uint8 RGB/RGBA
        min_size_ratio: Minimum bbox side as a fraction of min(width, height)
        min_fill_ratio: Minimum pixel count as a fraction of minSize²
        padding: Inward padding applied to every accepted box
        row_tolerance: Max vertical distance (px) for slots sharing a row

    Returns:
        List of Slot objects in fill order, numbered from 1. Empty when no
        region qualifies.
    """
    height, width = image.shape[:2]
    if width == 0 or height == 0:
        return []

    mask = blank_mask(image)
    visited = np.zeros_like(mask)

    min_size = min(width, height) * min_size_ratio
    min_pixels = min_size * min_size * min_fill_ratio
    step = max(1, min(width, height) // 100)

    slots: List[Slot] = []
    rejected = 0

    for y in range(0, height, step):
        # Skip rows with no fresh blank seeds on the sampling grid
        seeds = np.flatnonzero(mask[y, ::step] & ~visited[y, ::step])
        for index in seeds:
            x = int(index) * step
            if visited[y, x]:
                continue
            region = _flood_fill(mask, visited, x, y)

            raw_width = region.max_x - region.min_x
            raw_height = region.max_y - region.min_y

            if raw_width > min_size and raw_height > min_size and region.pixel_count > min_pixels:
                slot_width = raw_width - padding * 2
                slot_height = raw_height - padding * 2
                if slot_width <= 0 or slot_height <= 0:
                    rejected += 1
                    continue
                slots.append(Slot(
                    x=region.min_x + padding,
                    y=region.min_y + padding,
                    width=slot_width,
                    height=slot_height,
                ))
                logger.debug(
                    f"Slot candidate at ({region.min_x}, {region.min_y}) "
                    f"{raw_width}x{raw_height}, {region.pixel_count} px"
                )
            else:
                rejected += 1

    ordered = sort_reading_order(slots, row_tolerance)
    numbered = [replace(slot, frame_number=i) for i, slot in enumerate(ordered, 1)]

    logger.info(
        f"Detected {len(numbered)} slot(s) in {width}x{height} template "
        f"({rejected} blank region(s) rejected)"
    )

    return numbered


def detect_slots_with_profile(image: np.ndarray, profile: DetectionProfile, **kwargs) -> List[Slot]:
    """Run detection with a named threshold profile."""
    return detect_slots(
        image,
        min_size_ratio=profile.min_size_ratio,
        min_fill_ratio=profile.min_fill_ratio,
        **kwargs
    )
