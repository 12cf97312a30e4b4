"""Photo compositing into film templates."""

from filmstudio.compositing.assignment import (
    IDENTITY_ADJUSTMENT,
    Photo,
    PhotoAssignment,
    SlotAdjustment,
)
from filmstudio.compositing.cropping import SourceRect, adjusted_source_rect, cover_crop
from filmstudio.compositing.compositor import compose, compose_page, decode_photos

__all__ = [
    "IDENTITY_ADJUSTMENT",
    "Photo",
    "PhotoAssignment",
    "SlotAdjustment",
    "SourceRect",
    "adjusted_source_rect",
    "cover_crop",
    "compose",
    "compose_page",
    "decode_photos",
]
