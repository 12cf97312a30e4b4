"""Built-in templates and the two template kinds a caller can hand to the studio."""

import logging
from dataclasses import dataclass
from typing import Dict, List, Tuple

from filmstudio.preprocessing.loader import ImageReference, load_image
from filmstudio.slot_detection.detector import DetectionProfile, UPLOAD_PROFILE, detect_slots
from filmstudio.templates.synthesizer import TemplateLayout, synthesize_template

logger = logging.getLogger(__name__)

# Canvas sizes used for each synthetic layout style
DEFAULT_CANVAS_SIZES: Dict[str, Tuple[int, int]] = {
    'vertical': (600, 1000),
    'super8': (600, 1000),
    'horizontal': (1200, 500),
    'contact': (900, 1200),
}


@dataclass(frozen=True)
class SyntheticTemplate:
    """A procedurally drawn template; background and slots come from one pass."""

    id: str
    name: str
    description: str
    style: str
    slot_count: int
    aspect_ratio: str
    width: int = 0
    height: int = 0

    @property
    def size(self) -> Tuple[int, int]:
        default_w, default_h = DEFAULT_CANVAS_SIZES[self.style]
        return (self.width or default_w, self.height or default_h)

    def resolve(self) -> TemplateLayout:
        width, height = self.size
        return synthesize_template(self.style, self.slot_count, width, height)


@dataclass(frozen=True)
class ImageTemplate:
    """A template image (uploaded or bundled) whose slots are found by detection."""

    source: ImageReference
    profile: DetectionProfile = UPLOAD_PROFILE
    name: str = "Custom Template"

    def resolve(self, padding: int = 4, row_tolerance: int = 30) -> TemplateLayout:
        image, metadata = load_image(self.source)
        logger.info(
            f"Analyzing template {self.name} ({metadata.format}, "
            f"{image.shape[1]}x{image.shape[0]}) with '{self.profile.name}' profile"
        )
        slots = detect_slots(
            image,
            min_size_ratio=self.profile.min_size_ratio,
            min_fill_ratio=self.profile.min_fill_ratio,
            padding=padding,
            row_tolerance=row_tolerance,
        )
        return TemplateLayout(image=image, slots=slots)


BUILTIN_TEMPLATES: List[SyntheticTemplate] = [
    SyntheticTemplate(
        id='35mm-vertical',
        name='35mm Vertical',
        description='4-frame vertical strip',
        style='vertical',
        slot_count=4,
        aspect_ratio='2:3',
    ),
    SyntheticTemplate(
        id='35mm-horizontal',
        name='35mm Horizontal',
        description='Horizontal film strip',
        style='horizontal',
        slot_count=4,
        aspect_ratio='3:2',
    ),
    SyntheticTemplate(
        id='contact-sheet',
        name='Contact Sheet',
        description='3x4 grid layout',
        style='contact',
        slot_count=12,
        aspect_ratio='1:1',
    ),
    SyntheticTemplate(
        id='super8',
        name='Super 8',
        description='Vintage movie film',
        style='super8',
        slot_count=6,
        aspect_ratio='4:3',
    ),
]


def get_builtin_template(template_id: str) -> SyntheticTemplate:
    """Look up a built-in template by id."""
    for template in BUILTIN_TEMPLATES:
        if template.id == template_id:
            return template
    known = ', '.join(t.id for t in BUILTIN_TEMPLATES)
    raise KeyError(f"Unknown template {template_id!r} (available: {known})")
