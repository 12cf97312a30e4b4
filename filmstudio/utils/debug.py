"""Debug visualizations for templates, detected slots and composited pages."""

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Union

import cv2
import numpy as np

logger = logging.getLogger(__name__)

SLOT_COLOR = (0, 200, 0)
LABEL_TEXT_COLOR = (255, 255, 255)
PANEL_GAP_COLOR = (64, 64, 64)
PANEL_GAP = 12

_FONT = cv2.FONT_HERSHEY_SIMPLEX


def _to_uint8_rgb(image: np.ndarray) -> np.ndarray:
    """Any debug input (float [0,1] or uint8; gray, RGB, RGBA) as uint8 RGB.

    Alpha is flattened onto white, the same background exports use.
    """
    if np.issubdtype(image.dtype, np.floating):
        pixels = np.clip(image * 255.0 + 0.5, 0, 255).astype(np.uint8)
    else:
        pixels = image.astype(np.uint8, copy=False)

    if pixels.ndim == 2:
        return cv2.cvtColor(pixels, cv2.COLOR_GRAY2RGB)
    channels = pixels.shape[2]
    if channels == 3:
        return pixels
    if channels == 4:
        alpha = pixels[:, :, 3:4].astype(np.float32) / 255.0
        flat = pixels[:, :, :3].astype(np.float32) * alpha + 255.0 * (1.0 - alpha)
        return (flat + 0.5).astype(np.uint8)
    raise ValueError(f"Unsupported number of channels: {channels}")


def _prepare_path(output_path: Union[str, Path], suffixes: Sequence[str], default: str) -> Path:
    path = Path(output_path)
    if path.suffix.lower() not in suffixes:
        path = path.with_suffix(default)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def save_debug_image(
    image: np.ndarray,
    output_path: Union[str, Path],
    description: Optional[str] = None,
    quality: int = 90
) -> Path:
    """Write a numbered debug image (always JPEG) and return where it went.

    Args:
        image: Float [0,1] or uint8 buffer; gray, RGB or RGBA
        output_path: Target path, e.g. ``debug/02_slots_detected.jpg``
        description: Optional note for the log line
        quality: JPEG quality (0-100)
    """
    path = _prepare_path(output_path, ('.jpg', '.jpeg'), '.jpg')
    bgr = cv2.cvtColor(_to_uint8_rgb(image), cv2.COLOR_RGB2BGR)
    if not cv2.imwrite(str(path), bgr, [cv2.IMWRITE_JPEG_QUALITY, quality]):
        raise IOError(f"Could not write debug image: {path}")

    logger.debug(f"Debug image {path.name}" + (f": {description}" if description else ""))
    return path


def save_debug_text(
    text: str,
    output_path: Union[str, Path],
    description: Optional[str] = None
) -> Path:
    """Write a debug text artifact such as the slot list as JSON."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)

    logger.debug(f"Debug text {path.name}" + (f": {description}" if description else ""))
    return path


def draw_slot_detections(
    image: np.ndarray,
    slots: Sequence,
    line_thickness: int = 3
) -> np.ndarray:
    """Outline each slot and tag it with its frame number and size.

    Args:
        image: Template buffer, uint8 or float; RGB or RGBA
        slots: Slots in fill order
        line_thickness: Outline thickness in pixels

    Returns:
        Annotated uint8 RGB copy
    """
    canvas = _to_uint8_rgb(image).copy()
    font_scale = max(0.4, min(canvas.shape[:2]) / 1500)
    font_thickness = 1 if font_scale < 0.6 else 2

    for index, slot in enumerate(slots, 1):
        x1, y1, x2, y2 = slot.bbox
        cv2.rectangle(canvas, (x1, y1), (x2 - 1, y2 - 1), SLOT_COLOR, line_thickness)

        label = f"#{slot.frame_number or index} {slot.width}x{slot.height}"
        (label_w, label_h), baseline = cv2.getTextSize(label, _FONT, font_scale, font_thickness)
        tag_bottom = y1 + label_h + baseline + 8
        cv2.rectangle(canvas, (x1, y1), (x1 + label_w + 8, tag_bottom), SLOT_COLOR, cv2.FILLED)
        cv2.putText(
            canvas, label, (x1 + 4, y1 + label_h + 4),
            _FONT, font_scale, LABEL_TEXT_COLOR, font_thickness, cv2.LINE_AA
        )

    return canvas


def create_comparison_image(
    images: List[np.ndarray],
    labels: Optional[Sequence[str]] = None,
    max_width: int = 1920
) -> np.ndarray:
    """Panels side by side at a common height, separated by gray gutters.

    Args:
        images: Buffers to compare, any format accepted by ``save_debug_image``
        labels: Optional caption per panel, drawn in its top-left corner
        max_width: The strip is shrunk to this width if wider

    Returns:
        uint8 RGB comparison strip
    """
    if not images:
        raise ValueError("No images provided")

    panels = [_to_uint8_rgb(img) for img in images]
    height = max(p.shape[0] for p in panels)

    row: List[np.ndarray] = []
    for i, panel in enumerate(panels):
        if panel.shape[0] != height:
            width = max(1, int(round(panel.shape[1] * height / panel.shape[0])))
            panel = cv2.resize(panel, (width, height), interpolation=cv2.INTER_LINEAR)
        else:
            panel = panel.copy()
        if labels and i < len(labels):
            cv2.putText(panel, labels[i], (10, 30), _FONT, 0.8, SLOT_COLOR, 2, cv2.LINE_AA)
        if row:
            row.append(np.full((height, PANEL_GAP, 3), PANEL_GAP_COLOR, dtype=np.uint8))
        row.append(panel)

    strip = np.hstack(row)
    if strip.shape[1] > max_width:
        new_height = max(1, int(strip.shape[0] * max_width / strip.shape[1]))
        strip = cv2.resize(strip, (max_width, new_height), interpolation=cv2.INTER_AREA)

    return strip
