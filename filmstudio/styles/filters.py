"""Colour filters described with CSS-style filter expressions.

A style's ``filter`` and ``color_shift`` strings, for example
``"sepia(25%) saturate(85%) hue-rotate(10deg)"``, are compiled once into a
:class:`ColorFilter` value that the compositor passes to each photo draw.

Matrices follow the W3C Filter Effects definitions. Functions run in order
and results are clamped to [0, 1] after each step, matching how browsers
chain filter primitives.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Tuple

import numpy as np

logger = logging.getLogger(__name__)

_FUNCTION_PATTERN = re.compile(
    r'([a-z-]+)\(\s*([-+]?\d*\.?\d+)\s*(%|deg|rad|grad|turn)?\s*\)',
    re.IGNORECASE,
)

_CLAMPED_TO_ONE = ('grayscale', 'sepia', 'invert', 'opacity')
SUPPORTED_FUNCTIONS = (
    'brightness', 'contrast', 'grayscale', 'hue-rotate', 'invert', 'opacity', 'saturate', 'sepia'
)


@dataclass(frozen=True)
class FilterFunction:
    """One filter primitive; ``amount`` is a ratio, or radians for hue-rotate."""

    name: str
    amount: float


def _grayscale_matrix(amount: float) -> np.ndarray:
    s = 1.0 - amount
    return np.array([
        [0.2126 + 0.7874 * s, 0.7152 - 0.7152 * s, 0.0722 - 0.0722 * s],
        [0.2126 - 0.2126 * s, 0.7152 + 0.2848 * s, 0.0722 - 0.0722 * s],
        [0.2126 - 0.2126 * s, 0.7152 - 0.7152 * s, 0.0722 + 0.9278 * s],
    ], dtype=np.float32)


def _sepia_matrix(amount: float) -> np.ndarray:
    s = 1.0 - amount
    return np.array([
        [0.393 + 0.607 * s, 0.769 - 0.769 * s, 0.189 - 0.189 * s],
        [0.349 - 0.349 * s, 0.686 + 0.314 * s, 0.168 - 0.168 * s],
        [0.272 - 0.272 * s, 0.534 - 0.534 * s, 0.131 + 0.869 * s],
    ], dtype=np.float32)


def _saturate_matrix(s: float) -> np.ndarray:
    return np.array([
        [0.213 + 0.787 * s, 0.715 - 0.715 * s, 0.072 - 0.072 * s],
        [0.213 - 0.213 * s, 0.715 + 0.285 * s, 0.072 - 0.072 * s],
        [0.213 - 0.213 * s, 0.715 - 0.715 * s, 0.072 + 0.928 * s],
    ], dtype=np.float32)


def _hue_rotate_matrix(angle: float) -> np.ndarray:
    c, s = math.cos(angle), math.sin(angle)
    return np.array([
        [0.213 + c * 0.787 - s * 0.213, 0.715 - c * 0.715 - s * 0.715, 0.072 - c * 0.072 + s * 0.928],
        [0.213 - c * 0.213 + s * 0.143, 0.715 + c * 0.285 + s * 0.140, 0.072 - c * 0.072 - s * 0.283],
        [0.213 - c * 0.213 - s * 0.787, 0.715 - c * 0.715 + s * 0.715, 0.072 + c * 0.928 + s * 0.072],
    ], dtype=np.float32)


_MATRICES = {
    'grayscale': _grayscale_matrix,
    'sepia': _sepia_matrix,
    'saturate': _saturate_matrix,
    'hue-rotate': _hue_rotate_matrix,
}


@dataclass(frozen=True)
class ColorFilter:
    """An ordered chain of filter functions applied per pixel."""

    functions: Tuple[FilterFunction, ...] = ()

    @property
    def is_identity(self) -> bool:
        return not self.functions

    def apply(self, rgba: np.ndarray) -> np.ndarray:
        """Return a filtered copy of a float32 RGBA [0, 1] array (H, W, 4)."""
        out = rgba.astype(np.float32, copy=True)
        if self.is_identity:
            return out

        rgb = out[:, :, :3]
        for fn in self.functions:
            if fn.name in _MATRICES:
                matrix = _MATRICES[fn.name](fn.amount)
                rgb = rgb @ matrix.T
            elif fn.name == 'brightness':
                rgb = rgb * fn.amount
            elif fn.name == 'contrast':
                rgb = rgb * fn.amount + (0.5 - 0.5 * fn.amount)
            elif fn.name == 'invert':
                rgb = rgb * (1.0 - 2.0 * fn.amount) + fn.amount
            elif fn.name == 'opacity':
                out[:, :, 3] *= fn.amount
            rgb = np.clip(rgb, 0.0, 1.0)

        out[:, :, :3] = rgb
        return out


IDENTITY = ColorFilter()


def _to_amount(name: str, value: float, unit: str) -> float:
    if name == 'hue-rotate':
        if unit in ('', 'deg'):
            return math.radians(value)
        if unit == 'rad':
            return value
        if unit == 'grad':
            return value * math.pi / 200.0
        if unit == 'turn':
            return value * 2.0 * math.pi
        raise ValueError(f"Invalid unit for hue-rotate: {unit}")

    if unit == '%':
        value = value / 100.0
    elif unit:
        raise ValueError(f"Invalid unit for {name}: {unit}")

    if value < 0:
        raise ValueError(f"{name} amount must not be negative, got {value}")
    if name in _CLAMPED_TO_ONE:
        value = min(value, 1.0)
    return value


def parse_filter(expression: str) -> ColorFilter:
    """Compile a CSS-style filter expression into a ColorFilter.

    Empty strings and ``none`` yield the identity filter.

    Raises:
        ValueError: On unknown functions, bad units or unparseable text
    """
    text = (expression or '').strip()
    if not text or text.lower() == 'none':
        return IDENTITY

    functions = []
    position = 0
    for match in _FUNCTION_PATTERN.finditer(text):
        if text[position:match.start()].strip():
            raise ValueError(f"Cannot parse filter expression near {text[position:match.start()]!r}")
        position = match.end()

        name = match.group(1).lower()
        if name not in SUPPORTED_FUNCTIONS:
            raise ValueError(f"Unsupported filter function: {name}")
        unit = (match.group(3) or '').lower()
        functions.append(FilterFunction(name, _to_amount(name, float(match.group(2)), unit)))

    if text[position:].strip():
        raise ValueError(f"Cannot parse filter expression near {text[position:]!r}")

    logger.debug(f"Compiled filter '{text}' into {len(functions)} function(s)")
    return ColorFilter(tuple(functions))
