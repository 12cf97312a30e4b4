"""Slot detection for film strip templates."""

from filmstudio.slot_detection.detector import (
    Slot,
    DetectionProfile,
    STUDIO_PROFILE,
    UPLOAD_PROFILE,
    PROFILES,
    blank_mask,
    detect_slots,
    detect_slots_with_profile,
    sort_reading_order,
)

__all__ = [
    "Slot",
    "DetectionProfile",
    "STUDIO_PROFILE",
    "UPLOAD_PROFILE",
    "PROFILES",
    "blank_mask",
    "detect_slots",
    "detect_slots_with_profile",
    "sort_reading_order",
]
