"""Procedural film strip templates drawn together with their slot list."""

import logging
from dataclasses import dataclass, field
from typing import List, Tuple

import cv2
import numpy as np

from filmstudio.slot_detection.detector import Slot

logger = logging.getLogger(__name__)

STYLES = ('vertical', 'horizontal', 'contact', 'super8')

FILM_BASE = (26, 26, 26, 255)       # #1a1a1a
CONTACT_BASE = (42, 42, 42, 255)    # #2a2a2a
SPROCKET = (10, 10, 10, 255)        # #0a0a0a
FRAME_FILL = (255, 255, 255, 255)
FRAME_NUMBER = (255, 102, 0, 255)   # #ff6600

CONTACT_COLUMNS = 3
CONTACT_ROWS = 4

_FONT = cv2.FONT_HERSHEY_SIMPLEX


@dataclass
class TemplateLayout:
    """A template raster paired with the slots it contains."""

    image: np.ndarray  # uint8 RGBA (H, W, 4)
    slots: List[Slot] = field(default_factory=list)

    @property
    def size(self) -> Tuple[int, int]:
        return self.image.shape[1], self.image.shape[0]


def _rounded_rect(canvas: np.ndarray, x: float, y: float, w: float, h: float, radius: int, color) -> None:
    """Fill a rounded rectangle given float geometry (exclusive far edges)."""
    x1, y1 = int(round(x)), int(round(y))
    x2, y2 = int(round(x + w)) - 1, int(round(y + h)) - 1
    if x2 < x1 or y2 < y1:
        return
    r = max(0, min(radius, (x2 - x1) // 2, (y2 - y1) // 2))
    if r == 0:
        cv2.rectangle(canvas, (x1, y1), (x2, y2), color, -1)
        return
    cv2.rectangle(canvas, (x1 + r, y1), (x2 - r, y2), color, -1)
    cv2.rectangle(canvas, (x1, y1 + r), (x2, y2 - r), color, -1)
    for cx, cy in ((x1 + r, y1 + r), (x2 - r, y1 + r), (x1 + r, y2 - r), (x2 - r, y2 - r)):
        cv2.circle(canvas, (cx, cy), r, color, -1, cv2.LINE_AA)


def _stamp_frame_number(canvas: np.ndarray, number: int, x: int, baseline_y: int, text_height: float) -> None:
    """Draw a bold frame number with its baseline at (x, baseline_y)."""
    pixel_height = max(6, int(round(text_height)))
    thickness = max(1, pixel_height // 6)
    scale = cv2.getFontScaleFromHeight(_FONT, pixel_height, thickness)
    cv2.putText(canvas, str(number), (x, baseline_y), _FONT, scale, FRAME_NUMBER, thickness, cv2.LINE_AA)


def _fill_frame(canvas: np.ndarray, x: float, y: float, w: float, h: float, number: int) -> Slot:
    """Paint a white frame and return the slot covering exactly those pixels."""
    x1, y1 = int(round(x)), int(round(y))
    x2, y2 = int(round(x + w)), int(round(y + h))
    canvas[y1:y2, x1:x2] = FRAME_FILL
    return Slot(x=x1, y=y1, width=x2 - x1, height=y2 - y1, frame_number=number)


def _draw_strip(canvas: np.ndarray, slot_count: int, vertical: bool) -> List[Slot]:
    """Sprockets along two edges plus equal frames along the strip axis."""
    height, width = canvas.shape[:2]
    sprocket = min(width, height) * 0.02
    gap = sprocket * 2
    margin = sprocket * 3
    frame_margin = margin + sprocket

    length = height if vertical else width
    for i in range(int((length - margin * 2) // gap)):
        pos = margin + i * gap
        if vertical:
            _rounded_rect(canvas, sprocket * 0.5, pos, sprocket, sprocket * 0.8, 2, SPROCKET)
            _rounded_rect(canvas, width - sprocket * 1.5, pos, sprocket, sprocket * 0.8, 2, SPROCKET)
        else:
            _rounded_rect(canvas, pos, sprocket * 0.5, sprocket * 0.8, sprocket, 2, SPROCKET)
            _rounded_rect(canvas, pos, height - sprocket * 1.5, sprocket * 0.8, sprocket, 2, SPROCKET)

    frame_gap = length * 0.02
    frame_length = (length - margin * 2 - (slot_count - 1) * frame_gap) / slot_count
    frame_breadth = (width if vertical else height) - frame_margin * 2
    if frame_length < 1 or frame_breadth < 1:
        raise ValueError(f"Canvas {width}x{height} too small for {slot_count} frames")

    slots = []
    for i in range(slot_count):
        pos = margin + i * (frame_length + frame_gap)
        if vertical:
            slot = _fill_frame(canvas, frame_margin, pos, frame_breadth, frame_length, i + 1)
        else:
            slot = _fill_frame(canvas, pos, frame_margin, frame_length, frame_breadth, i + 1)
        _stamp_frame_number(canvas, i + 1, slot.x + 5, slot.y + slot.height - 5, sprocket)
        slots.append(slot)
    return slots


def _draw_contact_sheet(canvas: np.ndarray) -> List[Slot]:
    """Fixed 3x4 grid with even padding between and around cells."""
    height, width = canvas.shape[:2]
    canvas[:, :] = CONTACT_BASE

    padding = width * 0.02
    cell_width = (width - padding * (CONTACT_COLUMNS + 1)) / CONTACT_COLUMNS
    cell_height = (height - padding * (CONTACT_ROWS + 1)) / CONTACT_ROWS
    if cell_width < 1 or cell_height < 1:
        raise ValueError(f"Canvas {width}x{height} too small for a contact sheet")

    slots = []
    frame_number = 1
    for row in range(CONTACT_ROWS):
        for col in range(CONTACT_COLUMNS):
            x = padding + col * (cell_width + padding)
            y = padding + row * (cell_height + padding)
            slot = _fill_frame(canvas, x, y, cell_width, cell_height, frame_number)
            _stamp_frame_number(canvas, frame_number, slot.x + 3, slot.y + slot.height - 3, padding * 0.8)
            slots.append(slot)
            frame_number += 1
    return slots


def synthesize_template(style: str, slot_count: int, width: int, height: int) -> TemplateLayout:
    """Draw a built-in film template and return it with its slots.

    The slots are the exact white rectangles painted onto the canvas, so the
    result never needs to go through slot detection.

    Args:
        style: One of 'vertical', 'horizontal', 'contact', 'super8'
        slot_count: Number of frames (ignored by 'contact', always 12)
        width: Canvas width in pixels
        height: Canvas height in pixels

    Returns:
        TemplateLayout with a uint8 RGBA image and slots numbered from 1

    Raises:
        ValueError: For an unknown style, a non-positive size or slot count
    """
    if style not in STYLES:
        raise ValueError(f"Unknown template style: {style!r} (expected one of {', '.join(STYLES)})")
    if width <= 0 or height <= 0:
        raise ValueError(f"Template size must be positive, got {width}x{height}")
    if slot_count < 1 and style != 'contact':
        raise ValueError(f"slot_count must be at least 1, got {slot_count}")

    canvas = np.empty((height, width, 4), dtype=np.uint8)
    canvas[:, :] = FILM_BASE

    if style == 'contact':
        slots = _draw_contact_sheet(canvas)
    else:
        slots = _draw_strip(canvas, slot_count, vertical=style != 'horizontal')

    logger.debug(f"Synthesized {style} template {width}x{height} with {len(slots)} slots")

    return TemplateLayout(image=canvas, slots=slots)
