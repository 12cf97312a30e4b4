"""Compositing primitives and the film effect layers.

Every primitive receives its blend mode, opacity and pixels as arguments and
returns or writes only the region it is given; there is no shared drawing
state between calls.

Two canvas representations are used:
- the working canvas during photo/template drawing: float32 premultiplied
  RGBA [0, 1], starting fully transparent
- the flattened canvas for whole-image effects: float32 opaque RGB [0, 1]
"""

import logging
from typing import Optional, Tuple

import cv2
import numpy as np

logger = logging.getLogger(__name__)

LEAK_WARM = np.array([255, 100, 50], dtype=np.float32) / 255.0
LEAK_LIGHT = np.array([255, 200, 100], dtype=np.float32) / 255.0

# One dust speck per this many pixels at full dust opacity
_DUST_PIXELS_PER_SPECK = 5000


def premultiply(rgba: np.ndarray) -> np.ndarray:
    """Straight-alpha RGBA to premultiplied RGBA (new array)."""
    out = rgba.astype(np.float32, copy=True)
    out[:, :, :3] *= out[:, :, 3:4]
    return out


def source_over(canvas: np.ndarray, layer: np.ndarray, origin: Tuple[int, int] = (0, 0)) -> None:
    """Composite a premultiplied layer over the premultiplied canvas in place.

    The layer is clipped against the canvas bounds.
    """
    x, y = origin
    canvas_h, canvas_w = canvas.shape[:2]
    layer_h, layer_w = layer.shape[:2]

    x1, y1 = max(x, 0), max(y, 0)
    x2, y2 = min(x + layer_w, canvas_w), min(y + layer_h, canvas_h)
    if x2 <= x1 or y2 <= y1:
        return

    src = layer[y1 - y:y2 - y, x1 - x:x2 - x]
    dst = canvas[y1:y2, x1:x2]
    dst *= 1.0 - src[:, :, 3:4]
    dst += src


def flatten(canvas: np.ndarray, background: Tuple[float, float, float] = (1.0, 1.0, 1.0)) -> np.ndarray:
    """Flatten a premultiplied canvas onto an opaque background colour."""
    bg = np.asarray(background, dtype=np.float32)
    return canvas[:, :, :3] + bg * (1.0 - canvas[:, :, 3:4])


def vignette_layer(width: int, height: int, strength: float) -> np.ndarray:
    """Premultiplied black radial vignette for one slot.

    Alpha grows linearly from 0 at the centre to ``strength`` (0-1) at the
    half-diagonal.
    """
    radius = max(np.hypot(width, height) / 2.0, 1e-6)
    ys = np.arange(height, dtype=np.float32) + 0.5 - height / 2.0
    xs = np.arange(width, dtype=np.float32) + 0.5 - width / 2.0
    distance = np.sqrt(ys[:, None] ** 2 + xs[None, :] ** 2)

    layer = np.zeros((height, width, 4), dtype=np.float32)
    layer[:, :, 3] = np.clip(distance / radius, 0.0, 1.0) * strength
    return layer


def overlay_blend(backdrop: np.ndarray, source: np.ndarray) -> np.ndarray:
    """Separable 'overlay' blend mode."""
    return np.where(
        backdrop <= 0.5,
        2.0 * backdrop * source,
        1.0 - 2.0 * (1.0 - backdrop) * (1.0 - source),
    )


def screen_blend(backdrop: np.ndarray, source: np.ndarray) -> np.ndarray:
    """Separable 'screen' blend mode."""
    return 1.0 - (1.0 - backdrop) * (1.0 - source)


def _mix(backdrop: np.ndarray, blended: np.ndarray, alpha) -> np.ndarray:
    return backdrop * (1.0 - alpha) + blended * alpha


def apply_grain(rgb: np.ndarray, amount: float, rng: np.random.Generator) -> np.ndarray:
    """Monochrome per-pixel noise composited with the overlay mode.

    Args:
        rgb: Flattened canvas, float32 RGB [0, 1]
        amount: Style grain amount (0-100); layer alpha is amount * 2.5 of 255
        rng: Noise source

    Returns:
        New float32 RGB array
    """
    height, width = rgb.shape[:2]
    alpha = min(255, int(round(amount * 2.5))) / 255.0
    noise = rng.integers(0, 256, size=(height, width), dtype=np.uint8).astype(np.float32) / 255.0
    noise = noise[:, :, None]
    return _mix(rgb, overlay_blend(rgb, noise), alpha).astype(np.float32)


def apply_dust(rgb: np.ndarray, opacity: float, rng: np.random.Generator) -> np.ndarray:
    """Scattered light and dark specks with the odd hair, normal blend.

    Args:
        rgb: Flattened canvas, float32 RGB [0, 1]
        opacity: Style dust opacity (0-100)
        rng: Source for speck placement

    Returns:
        New float32 RGB array
    """
    height, width = rgb.shape[:2]
    count = int(round(width * height * (opacity / 100.0) / _DUST_PIXELS_PER_SPECK))
    if count == 0:
        return rgb.copy()

    max_radius = max(1, min(width, height) // 300)
    light = np.zeros((height, width), dtype=np.uint8)
    dark = np.zeros((height, width), dtype=np.uint8)

    for _ in range(count):
        target = light if rng.random() < 0.5 else dark
        cx = int(rng.integers(0, width))
        cy = int(rng.integers(0, height))
        if rng.random() < 0.1:
            length = int(rng.integers(5, max(6, min(width, height) // 20)))
            angle = rng.random() * np.pi
            end = (int(cx + np.cos(angle) * length), int(cy + np.sin(angle) * length))
            cv2.line(target, (cx, cy), end, 255, 1, cv2.LINE_AA)
        else:
            radius = int(rng.integers(1, max_radius + 1))
            cv2.circle(target, (cx, cy), radius, 255, -1, cv2.LINE_AA)

    strength = opacity / 100.0
    light_alpha = (light.astype(np.float32) / 255.0 * strength)[:, :, None]
    dark_alpha = (dark.astype(np.float32) / 255.0 * strength)[:, :, None]

    out = _mix(rgb, np.ones_like(rgb), light_alpha)
    out = _mix(out, np.zeros_like(rgb), dark_alpha)
    logger.debug(f"Dust layer: {count} specks")
    return out.astype(np.float32)


def light_leak_layer(width: int, height: int, opacity: float) -> Tuple[np.ndarray, np.ndarray]:
    """Diagonal warm gradient from the top-left to the bottom-right corner.

    Stops: warm orange at ``opacity`` (0-1), transparent at the midpoint,
    light warm tone at half ``opacity``. Interpolation happens in
    premultiplied space, so each half keeps its stop colour and fades alpha.

    Returns:
        Tuple of (straight RGB colour (H, W, 3), alpha (H, W, 1))
    """
    ys = np.arange(height, dtype=np.float32) + 0.5
    xs = np.arange(width, dtype=np.float32) + 0.5
    norm = float(width * width + height * height)
    t = np.clip((xs[None, :] * width + ys[:, None] * height) / norm, 0.0, 1.0)

    first_half = t < 0.5
    alpha = np.where(first_half, opacity * (1.0 - 2.0 * t), (opacity / 2.0) * (2.0 * t - 1.0))
    color = np.where(first_half[:, :, None], LEAK_WARM, LEAK_LIGHT)
    return color.astype(np.float32), alpha[:, :, None].astype(np.float32)


def apply_light_leak(rgb: np.ndarray, opacity: float) -> np.ndarray:
    """Blend the light leak gradient with the screen mode.

    Args:
        rgb: Flattened canvas, float32 RGB [0, 1]
        opacity: Style light leak opacity (0-100)
    """
    height, width = rgb.shape[:2]
    color, alpha = light_leak_layer(width, height, opacity / 100.0)
    return _mix(rgb, screen_blend(rgb, color), alpha).astype(np.float32)


def text_mask(
    width: int,
    height: int,
    text: str,
    pixel_height: int,
    origin: Tuple[int, int],
    thickness: Optional[int] = None,
) -> np.ndarray:
    """Antialiased single-channel mask of a line of text, float32 [0, 1]."""
    mask = np.zeros((height, width), dtype=np.uint8)
    thickness = thickness or max(1, pixel_height // 8)
    scale = cv2.getFontScaleFromHeight(cv2.FONT_HERSHEY_SIMPLEX, pixel_height, thickness)
    cv2.putText(mask, text, origin, cv2.FONT_HERSHEY_SIMPLEX, scale, 255, thickness, cv2.LINE_AA)
    return mask.astype(np.float32) / 255.0


def measure_text(text: str, pixel_height: int, thickness: Optional[int] = None) -> Tuple[int, int]:
    """Width and height in pixels of a line drawn by ``text_mask``."""
    thickness = thickness or max(1, pixel_height // 8)
    scale = cv2.getFontScaleFromHeight(cv2.FONT_HERSHEY_SIMPLEX, pixel_height, thickness)
    (text_width, text_height), _ = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, scale, thickness)
    return text_width, text_height
