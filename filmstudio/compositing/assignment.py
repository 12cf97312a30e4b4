"""Photos, per-slot placement adjustments and slot-to-photo assignments."""

from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence

from filmstudio.preprocessing.loader import ImageReference

CAPTION_MAX_CHARS = 25


@dataclass(frozen=True)
class Photo:
    """A gallery photo. The core only reads pixels through ``image_url``."""

    id: str
    image_url: ImageReference
    caption: Optional[str] = None
    mood: Optional[str] = None

    def short_caption(self, max_chars: int = CAPTION_MAX_CHARS) -> str:
        if not self.caption:
            return ''
        if len(self.caption) > max_chars:
            return self.caption[:max_chars] + '...'
        return self.caption


@dataclass(frozen=True)
class SlotAdjustment:
    """Pan and zoom applied to a slot's cover crop.

    Offsets move the crop by up to half its size in either direction; a scale
    above 1 zooms in by sampling a smaller source region.
    """

    offset_x: float = 0.0
    offset_y: float = 0.0
    scale: float = 1.0

    def __post_init__(self) -> None:
        if not -1.0 <= self.offset_x <= 1.0 or not -1.0 <= self.offset_y <= 1.0:
            raise ValueError(f"Offsets must be within [-1, 1], got ({self.offset_x}, {self.offset_y})")
        if not 0.5 <= self.scale <= 2.0:
            raise ValueError(f"Scale must be within [0.5, 2], got {self.scale}")

    @property
    def is_identity(self) -> bool:
        return self.offset_x == 0.0 and self.offset_y == 0.0 and self.scale == 1.0


IDENTITY_ADJUSTMENT = SlotAdjustment()


class PhotoAssignment:
    """Which photo, if any, goes into each slot."""

    def __init__(self, slot_count: int, photos: Sequence[Optional[Photo]] = ()) -> None:
        if len(photos) > slot_count:
            raise ValueError(f"{len(photos)} photos assigned to {slot_count} slots")
        self._slots: List[Optional[Photo]] = list(photos) + [None] * (slot_count - len(photos))

    @classmethod
    def from_photos(cls, photos: Sequence[Photo], slot_count: int) -> "PhotoAssignment":
        """Default assignment: the first photos fill slots in order."""
        return cls(slot_count, list(photos[:slot_count]))

    def assign(self, slot_index: int, photo: Photo) -> None:
        self._check_index(slot_index)
        self._slots[slot_index] = photo

    def clear(self, slot_index: int) -> None:
        self._check_index(slot_index)
        self._slots[slot_index] = None

    def filled_photos(self) -> List[Photo]:
        return [p for p in self._slots if p is not None]

    def is_empty(self) -> bool:
        return all(p is None for p in self._slots)

    def _check_index(self, slot_index: int) -> None:
        if not 0 <= slot_index < len(self._slots):
            raise IndexError(f"Slot index {slot_index} out of range (0-{len(self._slots) - 1})")

    def __len__(self) -> int:
        return len(self._slots)

    def __getitem__(self, index: int) -> Optional[Photo]:
        return self._slots[index]

    def __iter__(self) -> Iterator[Optional[Photo]]:
        return iter(self._slots)

    def __repr__(self) -> str:
        ids = [p.id if p else None for p in self._slots]
        return f"PhotoAssignment({ids})"
